"""Trigger handler: shorten a URL when its bracketed link is closed."""

import logging
from typing import Optional, Tuple, Union

import httpx

from .backends import ShorteningFunction, get_shortener
from .config import Config
from .host import EditorHost


class TriggerHandler:
    """Watch for the closing bracket typed right after a URL inside ``[[...``.

    On each trigger keystroke the handler inserts the character, then checks
    whether the text just before it is a URL opened by the link marker. If
    so, the configured shortening function receives the URL and its span.
    """

    def __init__(
        self,
        host: EditorHost,
        shortening_function: Union[str, ShorteningFunction, None] = None,
        config: Optional[Config] = None,
        transport: Optional[httpx.BaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize trigger handler.

        Args:
            host: Editor host providing buffer and URL recognition
            shortening_function: Callable or bundled backend name
                (defaults to config.shortening_function)
            config: Optional configuration
            transport: Optional httpx transport handed to bundled backends
            logger: Optional logger
        """
        self.host = host
        self.config = config or Config()
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)
        if shortening_function is None:
            shortening_function = self.config.shortening_function
        self.shortening_function = shortening_function
        self._resolved: Optional[Tuple[str, ShorteningFunction]] = None

    @classmethod
    def from_config(cls, host: EditorHost, config: Config, **kwargs) -> "TriggerHandler":
        """Create a handler from configuration."""
        return cls(host, config=config, **kwargs)

    @property
    def trigger_char(self) -> str:
        return self.config.trigger_char

    @property
    def opening_marker(self) -> str:
        return self.config.opening_marker

    def set_shortening_function(self, shortening_function: Union[str, ShorteningFunction]) -> None:
        """Change which function shortens URLs. Takes effect on the next trigger."""
        self.shortening_function = shortening_function

    def resolve_shortener(self) -> ShorteningFunction:
        """Resolve the configured shortening function.

        The configured value is read on every call so a reconfigured backend
        is picked up immediately. A backend built from a name is reused while
        that name stays configured, so deferred work stays reachable through
        ``drain``.

        Raises:
            ValueError: If a backend name is not registered
        """
        name = self.shortening_function
        if not isinstance(name, str):
            return name

        if self._resolved is None or self._resolved[0] != name:
            shortener = get_shortener(
                name,
                self.host,
                config=self.config,
                transport=self.transport,
                logger=self.logger,
            )
            self._resolved = (name, shortener)
        return self._resolved[1]

    async def drain(self) -> None:
        """Wait for deferred shortenings started through a backend name."""
        if self._resolved is None:
            return
        drain = getattr(self._resolved[1], "drain", None)
        if drain is not None:
            await drain()

    def _has_opening_marker(self, start: Optional[int], end: Optional[int]) -> bool:
        if start is None or end is None or start >= end:
            return False

        width = len(self.opening_marker)
        if start < width:
            return False

        return self.host.read_substring(start - width, start) == self.opening_marker

    def handle_trigger(self, repeat_count: int = 1) -> bool:
        """Insert the trigger character and shorten the URL it closes, if any.

        Args:
            repeat_count: Number of trigger characters to insert

        Returns:
            True if the shortening function was invoked

        Raises:
            ValueError: If repeat_count is not positive
        """
        if repeat_count < 1:
            raise ValueError(f"repeat_count must be positive, got {repeat_count}")

        host = self.host
        host.insert_text(self.trigger_char, repeat_count, True)

        point = host.current_cursor_position()
        anchor = point - repeat_count * len(self.trigger_char)

        if host.find_url_token_at(anchor) is None:
            return False

        # Recompute the span from the anchor itself; a span taken from the
        # post-insertion point can pick up markup from a neighbouring link.
        host.set_cursor_position(anchor)
        start, end = host.url_token_span_at(anchor)

        if not self._has_opening_marker(start, end):
            host.set_cursor_position(point)
            return False

        url = host.read_substring(start, end)
        shorten = self.resolve_shortener()

        self.logger.debug(f"Dispatching {url} [{start}, {end}) to {getattr(shorten, 'name', shorten)!r}")
        host.set_cursor_position(anchor)
        try:
            shorten(url, start, end)
        finally:
            # Back after the trigger, following any text the callback
            # replaced in front of it.
            host.set_cursor_position(point + host.current_cursor_position() - anchor)
        return True
