"""Common utilities for the link shortener."""

from .validators import is_valid_url, is_valid_marker
from .url_builder import build_api_url
from .url_token import find_url_span, find_url_token
from .logging_config import setup_logging

__all__ = [
    "is_valid_url",
    "is_valid_marker",
    "build_api_url",
    "find_url_span",
    "find_url_token",
    "setup_logging",
]
