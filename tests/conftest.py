"""Pytest configuration and fixtures."""

import httpx
import pytest

from link_shortener.common.logging_config import setup_logging
from link_shortener.config import Config
from link_shortener.host import InMemoryEditorHost


class RecordingShortener:
    """Fake shortening function that records its calls and the cursor at call time."""

    name = "recording"

    def __init__(self, host=None):
        self.host = host
        self.calls = []
        self.cursor_positions = []

    def __call__(self, url, start, end):
        self.calls.append((url, start, end))
        if self.host is not None:
            self.cursor_positions.append(self.host.current_cursor_position())


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def config():
    """Default configuration, isolated from any .env file."""
    return Config(_env_file=None)


@pytest.fixture
def make_host():
    """Factory for in-memory hosts with the cursor at the end of the text."""
    def _make(text="", cursor_position=None):
        return InMemoryEditorHost(text, cursor_position)
    return _make


@pytest.fixture
def recorder():
    """Create a recording fake shortener."""
    return RecordingShortener()


@pytest.fixture
def shortener_service():
    """Mock shortener HTTP service.

    Returns (transport, requests); responses can be adjusted through
    transport.reply = (status_code, kwargs).
    """
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        status_code, kwargs = transport.reply
        return httpx.Response(status_code, **kwargs)

    transport = httpx.MockTransport(handler)
    transport.reply = (200, {"text": "https://tinyurl.com/abc123"})
    return transport, requests


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
