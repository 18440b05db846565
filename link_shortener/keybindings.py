"""prompt_toolkit host binding and trigger installation."""

import logging
from typing import Optional, Tuple

from prompt_toolkit.application import get_app
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document
from prompt_toolkit.filters import Filter, emacs_insert_mode, vi_insert_mode
from prompt_toolkit.key_binding import KeyBindings

from .common.url_token import find_url_span
from .handler import TriggerHandler
from .host import EditorHost, check_span, shift_offset


logger = logging.getLogger(__name__)

TRIGGER_MARK = "_link_shortener_trigger"


class PromptToolkitHost(EditorHost):
    """Editor host over a prompt_toolkit Buffer.

    Without an explicit buffer, every call goes to the running
    application's current buffer.
    """

    def __init__(self, buffer: Optional[Buffer] = None):
        self._buffer = buffer

    @property
    def buffer(self) -> Buffer:
        if self._buffer is not None:
            return self._buffer
        return get_app().current_buffer

    def current_cursor_position(self) -> int:
        return self.buffer.cursor_position

    def set_cursor_position(self, offset: int) -> None:
        self.buffer.cursor_position = offset

    def insert_text(self, text: str, count: int = 1, mutate_undo_boundary: bool = True) -> None:
        buffer = self.buffer
        if mutate_undo_boundary:
            buffer.save_to_undo_stack()
        buffer.insert_text(text * count)

    def find_url_token_at(self, position: int) -> Optional[str]:
        start, end = self.url_token_span_at(position)
        if start is None:
            return None
        return self.buffer.text[start:end]

    def url_token_span_at(self, position: int) -> Tuple[Optional[int], Optional[int]]:
        return find_url_span(self.buffer.text, position)

    def read_substring(self, start: int, end: int) -> str:
        text = self.buffer.text
        check_span(start, end, len(text))
        return text[start:end]

    def replace_text(self, start: int, end: int, text: str) -> None:
        buffer = self.buffer
        check_span(start, end, len(buffer.text))
        buffer.save_to_undo_stack()
        cursor = shift_offset(buffer.cursor_position, start, end, len(text))
        new_text = buffer.text[:start] + text + buffer.text[end:]
        buffer.set_document(Document(new_text, cursor))


def _find_trigger_binding(key_bindings: KeyBindings, trigger_char: str):
    for binding in key_bindings.bindings:
        if binding.keys == (trigger_char,) and getattr(binding.handler, TRIGGER_MARK, False):
            return binding
    return None


def is_trigger_installed(key_bindings: KeyBindings, trigger_char: str = "]") -> bool:
    """Check whether a link-shortening trigger is bound to trigger_char."""
    return _find_trigger_binding(key_bindings, trigger_char) is not None


def install_trigger(
    key_bindings: KeyBindings,
    handler: TriggerHandler,
    filter: Optional[Filter] = None,
) -> bool:
    """Bind handler to its trigger character.

    Args:
        key_bindings: Registry to install into
        handler: Trigger handler to run on each keystroke
        filter: When the binding is active (defaults to insert mode)

    Returns:
        True if installed, False if a trigger was already bound to the key
    """
    trigger_char = handler.trigger_char
    if is_trigger_installed(key_bindings, trigger_char):
        logger.debug(f"Trigger for {trigger_char!r} already installed")
        return False

    if filter is None:
        filter = emacs_insert_mode | vi_insert_mode

    def _on_trigger(event):
        handler.handle_trigger(event.arg)

    setattr(_on_trigger, TRIGGER_MARK, True)
    key_bindings.add(trigger_char, filter=filter)(_on_trigger)
    logger.debug(f"Installed link shortening trigger on {trigger_char!r}")
    return True


def uninstall_trigger(key_bindings: KeyBindings, handler: TriggerHandler) -> bool:
    """Remove the trigger bound to handler's trigger character.

    Returns:
        True if a binding was removed
    """
    binding = _find_trigger_binding(key_bindings, handler.trigger_char)
    if binding is None:
        return False
    key_bindings.remove(binding.handler)
    return True
