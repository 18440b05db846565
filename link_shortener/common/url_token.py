"""Thing-at-point URL recognition over plain text.

Hosts that have no native URL-at-point primitive bind their
``find_url_token_at`` / ``url_token_span_at`` to these functions.
"""

import re
from typing import Optional, Tuple


# Characters that can never appear inside a URL token. Brackets are
# excluded so that link markup always terminates a URL.
URL_STOP_CHARS = frozenset(" \t\n\r\f\v\"'<>[]^`{}")

# Trailing punctuation belongs to the surrounding prose.
URL_TRAILING_PUNCTUATION = ".,;:!?"

_URL_BODY = r"[^\s\"'<>\[\]^`{}]"

URL_PATTERN = re.compile(
    r"(?P<scheme>(?:https?|s?ftp|file|ssh|git)://|mailto:)"
    rf"{_URL_BODY}*",
    re.IGNORECASE,
)

Span = Tuple[Optional[int], Optional[int]]


def _token_run(text: str, position: int) -> Tuple[int, int]:
    """Return the run of URL characters surrounding position."""
    lo = position
    while lo > 0 and text[lo - 1] not in URL_STOP_CHARS:
        lo -= 1

    hi = position
    while hi < len(text) and text[hi] not in URL_STOP_CHARS:
        hi += 1

    return lo, hi


def _trim_end(text: str, start: int, end: int) -> int:
    """Drop trailing prose punctuation and unmatched closing parens.

    A ``)`` stays when it closes a ``(`` inside the URL, as in
    ``https://en.wikipedia.org/wiki/Foo_(bar)``.
    """
    while end > start:
        last = text[end - 1]
        if last in URL_TRAILING_PUNCTUATION:
            end -= 1
        elif last == ")" and text.count(")", start, end) > text.count("(", start, end):
            end -= 1
        else:
            break
    return end


def find_url_span(text: str, position: int) -> Span:
    """Find the URL whose span includes, or ends at, position.

    Args:
        text: Buffer contents
        position: Offset into text

    Returns:
        (start, end) of the URL, or (None, None) when there is none
    """
    if position < 0 or position > len(text):
        return None, None

    lo, hi = _token_run(text, position)
    if lo == hi:
        return None, None

    for match in URL_PATTERN.finditer(text, lo, hi):
        start = match.start()
        if start > position:
            break
        end = _trim_end(text, match.end("scheme"), match.end())
        if end == match.end("scheme"):
            continue
        if position <= end:
            return start, end

    return None, None


def find_url_token(text: str, position: int) -> Optional[str]:
    """Return the URL text at position, or None."""
    start, end = find_url_span(text, position)
    if start is None:
        return None
    return text[start:end]
