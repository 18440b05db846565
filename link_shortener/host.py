"""Host editor capabilities consumed by the trigger handler."""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from .common.url_token import find_url_span


class EditorHost(ABC):
    """Abstract base class for a text-editing host.

    Offsets are zero-based character offsets into the buffer. The cursor
    sits between characters, so valid positions run from 0 to len(text).
    """

    @abstractmethod
    def current_cursor_position(self) -> int:
        """Return the cursor offset."""
        pass

    @abstractmethod
    def set_cursor_position(self, offset: int) -> None:
        """Move the cursor to offset."""
        pass

    @abstractmethod
    def insert_text(self, text: str, count: int = 1, mutate_undo_boundary: bool = True) -> None:
        """Insert count copies of text at the cursor, advancing the cursor past them.

        Args:
            text: Text to insert
            count: Number of copies
            mutate_undo_boundary: Whether the insertion starts a new undo step
        """
        pass

    @abstractmethod
    def find_url_token_at(self, position: int) -> Optional[str]:
        """Return the URL token whose span includes or ends at position."""
        pass

    @abstractmethod
    def url_token_span_at(self, position: int) -> Tuple[Optional[int], Optional[int]]:
        """Return (start, end) of the URL token at position, or (None, None)."""
        pass

    @abstractmethod
    def read_substring(self, start: int, end: int) -> str:
        """Return buffer text in [start, end) without side effects."""
        pass

    @abstractmethod
    def replace_text(self, start: int, end: int, text: str) -> None:
        """Replace buffer text in [start, end) with text.

        The cursor keeps its logical place: offsets at or before start are
        unchanged, offsets at or after end shift by the length difference,
        and offsets inside the replaced span clamp to its new end.
        """
        pass


def shift_offset(offset: int, start: int, end: int, new_length: int) -> int:
    """Map an offset across the replacement of [start, end) by new_length characters."""
    if offset <= start:
        return offset
    if offset >= end:
        return offset + new_length - (end - start)
    return start + new_length


def check_span(start: int, end: int, length: int) -> None:
    """Raise ValueError unless [start, end) is an ordered span inside length characters."""
    if not 0 <= start <= end <= length:
        raise ValueError(f"Span [{start}, {end}) outside buffer of length {length}")


class InMemoryEditorHost(EditorHost):
    """Editor host backed by a Python string.

    Used by tests and by callers that edit text outside an interactive
    editor. Keeps a snapshot undo stack like prompt_toolkit's buffer does.
    """

    def __init__(self, text: str = "", cursor_position: Optional[int] = None):
        """Initialize the buffer.

        Args:
            text: Initial buffer contents
            cursor_position: Initial cursor offset (defaults to end of text)
        """
        self.text = text
        self.cursor_position = len(text) if cursor_position is None else cursor_position
        self._check_offset(self.cursor_position)
        self.undo_stack: List[Tuple[str, int]] = []

    def _check_offset(self, offset: int) -> None:
        if not 0 <= offset <= len(self.text):
            raise ValueError(f"Offset {offset} outside buffer of length {len(self.text)}")

    def _save_undo(self) -> None:
        self.undo_stack.append((self.text, self.cursor_position))

    def undo(self) -> bool:
        """Restore the most recent snapshot.

        Returns:
            True if a snapshot was restored
        """
        if not self.undo_stack:
            return False
        self.text, self.cursor_position = self.undo_stack.pop()
        return True

    def current_cursor_position(self) -> int:
        return self.cursor_position

    def set_cursor_position(self, offset: int) -> None:
        self._check_offset(offset)
        self.cursor_position = offset

    def insert_text(self, text: str, count: int = 1, mutate_undo_boundary: bool = True) -> None:
        if mutate_undo_boundary:
            self._save_undo()
        data = text * count
        pos = self.cursor_position
        self.text = self.text[:pos] + data + self.text[pos:]
        self.cursor_position = pos + len(data)

    def find_url_token_at(self, position: int) -> Optional[str]:
        start, end = self.url_token_span_at(position)
        if start is None:
            return None
        return self.text[start:end]

    def url_token_span_at(self, position: int) -> Tuple[Optional[int], Optional[int]]:
        return find_url_span(self.text, position)

    def read_substring(self, start: int, end: int) -> str:
        check_span(start, end, len(self.text))
        return self.text[start:end]

    def replace_text(self, start: int, end: int, text: str) -> None:
        check_span(start, end, len(self.text))
        self._save_undo()
        self.cursor_position = shift_offset(self.cursor_position, start, end, len(text))
        self.text = self.text[:start] + text + self.text[end:]

    def __repr__(self) -> str:
        return f"InMemoryEditorHost(text={self.text!r}, cursor_position={self.cursor_position})"
