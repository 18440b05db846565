"""Bundled URL shortening backends.

Every backend implements the shortening contract ``shorten(url_text, start,
end)``: it shortens ``url_text`` and replaces ``[start, end)`` in the host
buffer with the result. Failures are logged and leave the buffer untouched.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Set, Union

import httpx

from .common.url_builder import build_api_url
from .common.validators import is_valid_url
from .config import Config
from .host import EditorHost


ShorteningFunction = Callable[[str, int, int], Any]

DEFERRED_SUFFIX = "-async"

HTTPClient = Union[httpx.Client, httpx.AsyncClient]


class ShortenerBackend(ABC):
    """Abstract base class for HTTP shortening services."""

    name = ""

    def __init__(
        self,
        host: EditorHost,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize backend.

        Args:
            host: Editor host whose buffer receives the short URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
            logger: Optional logger
        """
        self.host = host
        self.timeout = timeout
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    @abstractmethod
    def from_config(
        cls,
        host: EditorHost,
        config: Config,
        transport: Optional[httpx.BaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "ShortenerBackend":
        """Build the backend from configuration."""
        pass

    @abstractmethod
    def build_request(self, client: HTTPClient, url: str) -> httpx.Request:
        """Build the HTTP request that shortens url."""
        pass

    @abstractmethod
    def parse_response(self, response: httpx.Response) -> str:
        """Extract the short URL from a successful response."""
        pass

    def _accepts(self, url: str) -> bool:
        is_valid, error = is_valid_url(url)
        if not is_valid:
            self.logger.debug(f"{self.name}: not shortening {url!r}: {error}")
        return is_valid

    def _checked(self, url: str, short_url: str) -> Optional[str]:
        short_url = short_url.strip()
        is_valid, error = is_valid_url(short_url)
        if not is_valid:
            self.logger.warning(f"{self.name} returned an unusable result for {url}: {error}")
            return None
        return short_url

    def shorten(self, url: str) -> Optional[str]:
        """Shorten url synchronously.

        Args:
            url: The URL to shorten

        Returns:
            Short URL, or None if shortening failed
        """
        if not self._accepts(url):
            return None

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.send(self.build_request(client, url))
                response.raise_for_status()
                short_url = self.parse_response(response)
        except httpx.HTTPError as e:
            self.logger.warning(f"{self.name} request failed for {url}: {e}")
            return None
        except (ValueError, KeyError) as e:
            self.logger.warning(f"Failed to parse {self.name} response for {url}: {e}")
            return None

        return self._checked(url, short_url)

    async def shorten_async(self, url: str) -> Optional[str]:
        """Shorten url without blocking the event loop.

        Args:
            url: The URL to shorten

        Returns:
            Short URL, or None if shortening failed
        """
        if not self._accepts(url):
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.send(self.build_request(client, url))
                response.raise_for_status()
                short_url = self.parse_response(response)
        except httpx.HTTPError as e:
            self.logger.warning(f"{self.name} request failed for {url}: {e}")
            return None
        except (ValueError, KeyError) as e:
            self.logger.warning(f"Failed to parse {self.name} response for {url}: {e}")
            return None

        return self._checked(url, short_url)

    def apply(self, url: str, start: int, end: int, short_url: str) -> bool:
        """Replace [start, end) with short_url if it still holds url.

        Args:
            url: The URL that was shortened
            start: Span start
            end: Span end
            short_url: Replacement text

        Returns:
            True if the buffer was changed
        """
        try:
            current = self.host.read_substring(start, end)
        except ValueError:
            current = None

        if current != url:
            self.logger.warning(
                f"Buffer changed under [{start}, {end}) before {self.name} finished; "
                f"leaving {url} in place"
            )
            return False

        self.host.replace_text(start, end, short_url)
        self.logger.info(f"Shortened URL: {url} -> {short_url}")
        return True

    def __call__(self, url: str, start: int, end: int) -> Optional[str]:
        short_url = self.shorten(url)
        if short_url is None:
            return None
        self.apply(url, start, end, short_url)
        return short_url


class TinyURLShortener(ShortenerBackend):
    """Shorten via TinyURL's plain-text creation API."""

    name = "tinyurl"

    def __init__(self, host: EditorHost, api_url: str = "https://tinyurl.com/api-create.php", **kwargs):
        super().__init__(host, **kwargs)
        self.api_url = api_url

    @classmethod
    def from_config(cls, host, config, transport=None, logger=None):
        return cls(
            host,
            api_url=config.tinyurl_api_url,
            timeout=config.request_timeout,
            transport=transport,
            logger=logger,
        )

    def build_request(self, client, url):
        return client.build_request("GET", self.api_url, params={"url": url})

    def parse_response(self, response):
        return response.text


class IsGdShortener(ShortenerBackend):
    """Shorten via is.gd (no key required)."""

    name = "isgd"

    def __init__(self, host: EditorHost, api_url: str = "https://is.gd/create.php", **kwargs):
        super().__init__(host, **kwargs)
        self.api_url = api_url

    @classmethod
    def from_config(cls, host, config, transport=None, logger=None):
        return cls(
            host,
            api_url=config.isgd_api_url,
            timeout=config.request_timeout,
            transport=transport,
            logger=logger,
        )

    def build_request(self, client, url):
        return client.build_request("GET", self.api_url, params={"format": "simple", "url": url})

    def parse_response(self, response):
        return response.text


class SelfHostedShortener(ShortenerBackend):
    """Shorten via a self-hosted shortener service exposing POST /api/shorten."""

    name = "self-hosted"

    def __init__(self, host: EditorHost, base_url: str = "http://localhost:9200", path_prefix: str = "", **kwargs):
        super().__init__(host, **kwargs)
        self.endpoint = build_api_url(base_url, "/api/shorten", path_prefix)

    @classmethod
    def from_config(cls, host, config, transport=None, logger=None):
        return cls(
            host,
            base_url=config.self_hosted_base_url,
            path_prefix=config.self_hosted_path_prefix,
            timeout=config.request_timeout,
            transport=transport,
            logger=logger,
        )

    def build_request(self, client, url):
        return client.build_request("POST", self.endpoint, json={"url": url})

    def parse_response(self, response):
        return response.json()["short_url"]


class DeferredShortener:
    """Run a backend as a task on the running asyncio loop.

    Calling it schedules the request and returns the task immediately; the
    buffer changes whenever the task completes. Requires a running loop,
    which prompt_toolkit applications provide.
    """

    def __init__(self, backend: ShortenerBackend):
        self.backend = backend
        self.name = f"{backend.name}{DEFERRED_SUFFIX}"
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of shortenings still in flight."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every in-flight shortening to finish."""
        if self._pending:
            await asyncio.gather(*self._pending)

    async def _run(self, url: str, start: int, end: int) -> Optional[str]:
        short_url = await self.backend.shorten_async(url)
        if short_url is None:
            return None
        self.backend.apply(url, start, end, short_url)
        return short_url

    def __call__(self, url: str, start: int, end: int) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run(url, start, end))
        # Fire and forget, but keep a reference until the task finishes
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task


BACKENDS: Dict[str, type] = {
    TinyURLShortener.name: TinyURLShortener,
    IsGdShortener.name: IsGdShortener,
    SelfHostedShortener.name: SelfHostedShortener,
}


def available_shorteners() -> List[str]:
    """List the names get_shortener accepts."""
    names = sorted(BACKENDS)
    return names + [f"{name}{DEFERRED_SUFFIX}" for name in names]


def get_shortener(
    name: str,
    host: EditorHost,
    config: Optional[Config] = None,
    transport: Optional[httpx.BaseTransport] = None,
    logger: Optional[logging.Logger] = None,
) -> ShorteningFunction:
    """Build the shortening function registered under name.

    Args:
        name: Backend name, optionally with the '-async' suffix
        host: Editor host the backend edits
        config: Configuration (defaults to a fresh Config)
        transport: Optional httpx transport
        logger: Optional logger

    Returns:
        Callable implementing shorten(url_text, start, end)

    Raises:
        ValueError: If no backend is registered under name
    """
    config = config or Config()
    key = name.strip().lower()

    deferred = key.endswith(DEFERRED_SUFFIX)
    if deferred:
        key = key[: -len(DEFERRED_SUFFIX)]

    backend_cls = BACKENDS.get(key)
    if backend_cls is None:
        raise ValueError(
            f"Unknown shortening function '{name}' "
            f"(available: {', '.join(available_shorteners())})"
        )

    backend = backend_cls.from_config(host, config, transport=transport, logger=logger)
    if deferred:
        return DeferredShortener(backend)
    return backend
