"""Domain hierarchy helpers.

The walk-up used by both the pruner and the matcher: strip the leftmost
label one at a time, stopping before a bare top-level label. "a.b.c"
has ancestors "b.c" only; "c" on its own is never a matchable parent.
"""

from typing import Iterator


def iter_ancestors(domain: str) -> Iterator[str]:
    """Yield the proper ancestors of a domain, nearest first.

    Args:
        domain: Canonical domain (e.g., "cdn.ads.example.com")

    Yields:
        "ads.example.com", "example.com"
    """
    rest = domain
    while True:
        dot = rest.find(".")
        if dot == -1:
            return
        rest = rest[dot + 1:]
        # Need at least one dot in the parent ("foo.tld", not "tld")
        if "." not in rest:
            return
        yield rest


def iter_walk(host: str) -> Iterator[str]:
    """Yield the host itself followed by its ancestors.

    Empty hosts yield nothing.
    """
    if not host:
        return
    yield host
    yield from iter_ancestors(host)


def canonicalize(domain: str) -> str:
    """Lower-case a domain and drop surrounding whitespace and a trailing dot."""
    return domain.strip().lower().rstrip(".")
