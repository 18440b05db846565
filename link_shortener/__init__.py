"""Shorten URLs inside bracketed links as the link is typed."""

from .config import Config, load_config
from .host import EditorHost, InMemoryEditorHost
from .handler import TriggerHandler
from .backends import (
    DeferredShortener,
    IsGdShortener,
    SelfHostedShortener,
    ShortenerBackend,
    TinyURLShortener,
    available_shorteners,
    get_shortener,
)

__all__ = [
    "Config",
    "load_config",
    "EditorHost",
    "InMemoryEditorHost",
    "TriggerHandler",
    "ShortenerBackend",
    "TinyURLShortener",
    "IsGdShortener",
    "SelfHostedShortener",
    "DeferredShortener",
    "available_shorteners",
    "get_shortener",
]
