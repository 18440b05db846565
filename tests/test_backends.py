"""Tests for the bundled shortening backends."""

import asyncio
import json
import logging

import httpx
import pytest

from link_shortener.backends import (
    DeferredShortener,
    IsGdShortener,
    SelfHostedShortener,
    TinyURLShortener,
    available_shorteners,
    get_shortener,
)
from link_shortener.config import Config
from link_shortener.handler import TriggerHandler
from link_shortener.host import InMemoryEditorHost


LONG_URL = "https://example.com/a/very/long/path?with=query"


def linked_host():
    """Buffer holding a closed link around LONG_URL, cursor after it."""
    text = f"[[{LONG_URL}]"
    return InMemoryEditorHost(text, cursor_position=len(text))


SPAN = (2, 2 + len(LONG_URL))


class TestTinyURL:
    """Test the TinyURL backend."""

    def test_request(self, shortener_service):
        """The long URL goes in the url query parameter."""
        transport, requests = shortener_service
        backend = TinyURLShortener(linked_host(), transport=transport)

        assert backend.shorten(LONG_URL) == "https://tinyurl.com/abc123"
        assert requests[0].method == "GET"
        assert requests[0].url.host == "tinyurl.com"
        assert requests[0].url.path == "/api-create.php"
        assert requests[0].url.params["url"] == LONG_URL

    def test_call_replaces_span(self, shortener_service):
        """Calling the backend rewrites the buffer span."""
        transport, _ = shortener_service
        host = linked_host()
        backend = TinyURLShortener(host, transport=transport)

        assert backend(LONG_URL, *SPAN) == "https://tinyurl.com/abc123"
        assert host.text == "[[https://tinyurl.com/abc123]"

    def test_replacement_is_undoable(self, shortener_service):
        """The replacement is a separate undo step."""
        transport, _ = shortener_service
        host = linked_host()
        TinyURLShortener(host, transport=transport)(LONG_URL, *SPAN)

        assert host.undo()
        assert host.text == f"[[{LONG_URL}]"

    def test_whitespace_stripped(self, shortener_service):
        """Trailing newlines in the plain-text response are dropped."""
        transport, _ = shortener_service
        transport.reply = (200, {"text": "https://tinyurl.com/xyz\n"})
        backend = TinyURLShortener(linked_host(), transport=transport)

        assert backend.shorten(LONG_URL) == "https://tinyurl.com/xyz"

    def test_http_error(self, shortener_service, caplog):
        """HTTP errors are logged and leave the buffer alone."""
        transport, _ = shortener_service
        transport.reply = (500, {"text": "Error"})
        host = linked_host()
        backend = TinyURLShortener(host, transport=transport)

        with caplog.at_level(logging.WARNING):
            assert backend(LONG_URL, *SPAN) is None

        assert host.text == f"[[{LONG_URL}]"
        assert "request failed" in caplog.text

    def test_connection_error(self, caplog):
        """Network failures are logged, not raised."""
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        host = linked_host()
        backend = TinyURLShortener(host, transport=httpx.MockTransport(refuse))

        with caplog.at_level(logging.WARNING):
            assert backend(LONG_URL, *SPAN) is None
        assert host.text == f"[[{LONG_URL}]"

    def test_unusable_result(self, shortener_service, caplog):
        """A response that is not a URL is rejected."""
        transport, _ = shortener_service
        transport.reply = (200, {"text": "Error"})
        host = linked_host()
        backend = TinyURLShortener(host, transport=transport)

        with caplog.at_level(logging.WARNING):
            assert backend(LONG_URL, *SPAN) is None
        assert host.text == f"[[{LONG_URL}]"
        assert "unusable result" in caplog.text

    def test_non_http_url_skipped(self, shortener_service):
        """Only http(s) URLs are sent to the service."""
        transport, requests = shortener_service
        backend = TinyURLShortener(linked_host(), transport=transport)

        assert backend.shorten("ftp://files.example.org/pub") is None
        assert requests == []


class TestIsGd:
    """Test the is.gd backend."""

    def test_request(self, shortener_service):
        """is.gd is asked for a plain-text response."""
        transport, requests = shortener_service
        transport.reply = (200, {"text": "https://is.gd/AbCdEf"})
        host = linked_host()
        backend = IsGdShortener(host, transport=transport)

        backend(LONG_URL, *SPAN)

        assert requests[0].url.host == "is.gd"
        assert requests[0].url.params["format"] == "simple"
        assert requests[0].url.params["url"] == LONG_URL
        assert host.text == "[[https://is.gd/AbCdEf]"


class TestSelfHosted:
    """Test the self-hosted shortener backend."""

    def test_request(self, shortener_service):
        """The URL is posted as JSON to /api/shorten."""
        transport, requests = shortener_service
        transport.reply = (200, {"json": {
            "short_code": "abc123",
            "short_url": "https://s.example.com/u_s/abc123",
            "original_url": LONG_URL,
            "created_at": "2024-01-01T12:00:00Z",
        }})
        host = linked_host()
        backend = SelfHostedShortener(
            host,
            base_url="https://s.example.com/",
            path_prefix="/u_s",
            transport=transport,
        )

        backend(LONG_URL, *SPAN)

        assert requests[0].method == "POST"
        assert str(requests[0].url) == "https://s.example.com/u_s/api/shorten"
        assert json.loads(requests[0].content) == {"url": LONG_URL}
        assert host.text == "[[https://s.example.com/u_s/abc123]"

    def test_missing_field(self, shortener_service, caplog):
        """A response without short_url is a parse failure."""
        transport, _ = shortener_service
        transport.reply = (200, {"json": {"error": "nope"}})
        host = linked_host()
        backend = SelfHostedShortener(host, transport=transport)

        with caplog.at_level(logging.WARNING):
            assert backend(LONG_URL, *SPAN) is None
        assert "Failed to parse" in caplog.text

    def test_from_config(self):
        """Endpoint comes from configuration."""
        config = Config(
            _env_file=None,
            self_hosted_base_url="http://shortener:9200",
            self_hosted_path_prefix="s",
        )
        backend = SelfHostedShortener.from_config(linked_host(), config)
        assert backend.endpoint == "http://shortener:9200/s/api/shorten"


class TestApply:
    """Test the stale span guard."""

    def test_stale_span(self, caplog):
        """A span that no longer holds the URL is not overwritten."""
        host = linked_host()
        backend = TinyURLShortener(host)
        host.set_cursor_position(0)
        host.insert_text("x")

        with caplog.at_level(logging.WARNING):
            assert backend.apply(LONG_URL, *SPAN, "https://tinyurl.com/abc") is False
        assert host.text == f"x[[{LONG_URL}]"

    def test_span_outside_buffer(self):
        """A span past the end of a shrunken buffer is stale."""
        host = linked_host()
        backend = TinyURLShortener(host)
        host.replace_text(0, len(host.text), "")

        assert backend.apply(LONG_URL, *SPAN, "https://tinyurl.com/abc") is False
        assert host.text == ""


@pytest.mark.asyncio
class TestDeferred:
    """Test deferred shortening on the event loop."""

    async def test_returns_before_buffer_changes(self, shortener_service):
        """The call schedules work and the buffer changes later."""
        transport, _ = shortener_service
        host = linked_host()
        shortener = DeferredShortener(TinyURLShortener(host, transport=transport))

        task = shortener(LONG_URL, *SPAN)

        assert isinstance(task, asyncio.Task)
        assert host.text == f"[[{LONG_URL}]"
        assert shortener.pending == 1

        assert await task == "https://tinyurl.com/abc123"
        assert host.text == "[[https://tinyurl.com/abc123]"

    async def test_through_handler(self, shortener_service, config):
        """The handler fires and forgets a deferred backend."""
        transport, _ = shortener_service
        text = f"[[{LONG_URL}"
        host = InMemoryEditorHost(text)
        shortener = get_shortener("tinyurl-async", host, config=config, transport=transport)
        handler = TriggerHandler(host, shortener, config=config)

        assert handler.handle_trigger() is True
        assert host.text == text + "]"

        await shortener.drain()

        assert host.text == "[[https://tinyurl.com/abc123]"
        assert shortener.pending == 0

    async def test_drain_through_handler_by_name(self, shortener_service, config):
        """Work started through a backend name can be drained from the handler."""
        transport, requests = shortener_service
        # Same length as the short URL, so neither replacement moves the other span
        host = InMemoryEditorHost("[[http://example.com/first01")
        handler = TriggerHandler(host, "tinyurl-async", config=config, transport=transport)

        handler.handle_trigger()
        host.insert_text(" [[http://example.com/second1")
        handler.handle_trigger()

        shortener = handler.resolve_shortener()
        assert isinstance(shortener, DeferredShortener)
        assert shortener.pending == 2

        await handler.drain()

        assert shortener.pending == 0
        assert len(requests) == 2
        assert host.text == "[[https://tinyurl.com/abc123] [[https://tinyurl.com/abc123]"

    async def test_edit_before_completion(self, shortener_service, config):
        """Edits that move the URL before the task ends prevent replacement."""
        transport, _ = shortener_service
        host = InMemoryEditorHost(f"[[{LONG_URL}")
        shortener = get_shortener("tinyurl-async", host, config=config, transport=transport)
        handler = TriggerHandler(host, shortener, config=config)

        handler.handle_trigger()
        host.set_cursor_position(0)
        host.insert_text("* ")
        await shortener.drain()

        assert host.text == f"* [[{LONG_URL}]"

    async def test_failure_is_silent(self, shortener_service):
        """A failed deferred request resolves to None."""
        transport, _ = shortener_service
        transport.reply = (502, {"text": "bad gateway"})
        host = linked_host()
        shortener = DeferredShortener(TinyURLShortener(host, transport=transport))

        assert await shortener(LONG_URL, *SPAN) is None
        assert host.text == f"[[{LONG_URL}]"


def test_deferred_needs_running_loop():
    """Deferred shortening outside an event loop is a misconfiguration."""
    shortener = DeferredShortener(TinyURLShortener(linked_host()))
    with pytest.raises(RuntimeError):
        shortener(LONG_URL, *SPAN)


class TestRegistry:
    """Test backend lookup by name."""

    def test_available(self):
        """Every backend has a deferred variant."""
        names = available_shorteners()
        for name in ("tinyurl", "isgd", "self-hosted"):
            assert name in names
            assert f"{name}-async" in names

    @pytest.mark.parametrize("name,cls", [
        ("tinyurl", TinyURLShortener),
        ("isgd", IsGdShortener),
        ("self-hosted", SelfHostedShortener),
        (" TinyURL ", TinyURLShortener),
    ])
    def test_sync_lookup(self, name, cls, config):
        """Names map to backend classes."""
        assert isinstance(get_shortener(name, linked_host(), config=config), cls)

    def test_deferred_lookup(self, config):
        """The -async suffix wraps the backend."""
        shortener = get_shortener("isgd-async", linked_host(), config=config)
        assert isinstance(shortener, DeferredShortener)
        assert isinstance(shortener.backend, IsGdShortener)
        assert shortener.name == "isgd-async"

    def test_unknown(self, config):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown shortening function"):
            get_shortener("bitly", linked_host(), config=config)

    def test_config_values_applied(self):
        """Timeout and endpoint come from configuration."""
        config = Config(_env_file=None, request_timeout=2.5, tinyurl_api_url="http://tiny.local/create")
        backend = get_shortener("tinyurl", linked_host(), config=config)
        assert backend.timeout == 2.5
        assert backend.api_url == "http://tiny.local/create"
