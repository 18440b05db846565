"""URL building utilities for shortener API endpoints."""


def build_api_url(
    base_url: str,
    endpoint: str,
    path_prefix: str = "",
) -> str:
    """Build a complete API endpoint URL.

    Args:
        base_url: Base URL (e.g., https://short.example.com)
        endpoint: Endpoint path (e.g., /api/shorten)
        path_prefix: Optional path prefix the service is mounted under (e.g., /u_s)

    Returns:
        Complete endpoint URL
    """
    base = base_url.rstrip("/")
    prefix = path_prefix.strip("/")
    path = endpoint.lstrip("/")

    if prefix:
        return f"{base}/{prefix}/{path}"
    return f"{base}/{path}"
