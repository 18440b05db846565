"""Validation utilities for the link shortener."""

from urllib.parse import urlparse
from typing import Tuple


MAX_URL_LENGTH = 2048


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a URL that is about to be sent to, or came back from, a shortener.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlparse(url)
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if result.scheme not in ("http", "https"):
        return False, "URL must use http or https protocol"

    if not result.netloc:
        return False, "URL must have a valid domain"

    return True, ""


def is_valid_marker(marker: str, length: int) -> Tuple[bool, str]:
    """Validate a literal markup marker such as the ``[[`` link opener.

    Args:
        marker: The marker text
        length: Exact number of characters required

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(marker, str):
        return False, "Marker must be a string"

    if len(marker) != length:
        return False, f"Marker must be exactly {length} character(s), got {marker!r}"

    if any(c.isspace() for c in marker):
        return False, "Marker cannot contain whitespace"

    return True, ""
