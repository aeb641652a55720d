"""Host extraction from URLs."""

from typing import Optional

SCHEME_PREFIXES = ("https://", "http://")


def get_host_from_url(url: str) -> Optional[str]:
    """Get the host part of a URL.

    Strips one leading "https://" or "http://" (case-sensitive) and cuts
    at the first "/". Ports, userinfo and trailing dots are kept.

    Args:
        url: URL or bare host (e.g., "https://example.com/path")

    Returns:
        Host (e.g., "example.com"), or None if nothing is left
    """
    for prefix in SCHEME_PREFIXES:
        if url.startswith(prefix):
            url = url[len(prefix):]
            break

    host, _, _ = url.partition("/")
    return host or None
