"""Caller-supplied exact-match domain sets layered over the dictionary."""

import logging
import threading
from typing import Iterable, Optional, Union

from domaincat.categories import OVERRIDE_TAGS, Category, OverrideTag, parse_tag
from domaincat.domains import canonicalize
from domaincat.errors import RegistrationConflict

logger = logging.getLogger(__name__)


def _tag_name(tag: OverrideTag) -> str:
    return tag.value if isinstance(tag, Category) else tag


class OverrideRegistry:
    """Write-once-per-tag override sets.

    Each tag (a category or "networking") can be registered exactly once.
    Registration is meant for startup; lookups are safe from any thread
    at any time.
    """

    def __init__(self) -> None:
        self._sets: dict[str, frozenset[str]] = {}
        self._lock = threading.Lock()

    def register(self, tag: Union[str, Category], domains: Iterable[str]) -> frozenset[str]:
        """Install the override set for a tag.

        Args:
            tag: Category, "networking", or any other name (treated as bad)
            domains: Domains to match exactly (lower-cased on insert)

        Returns:
            The installed set

        Raises:
            RegistrationConflict: If the tag already has a set; the
                existing set is left untouched
        """
        name = _tag_name(parse_tag(tag))
        members = frozenset(d for d in (canonicalize(domain) for domain in domains) if d)

        with self._lock:
            if name in self._sets:
                raise RegistrationConflict(name)
            self._sets[name] = members

        logger.info(f"Registered {len(members)} override domains for {name}")
        return members

    def is_registered(self, tag: Union[str, Category]) -> bool:
        return _tag_name(parse_tag(tag)) in self._sets

    def get(self, tag: Union[str, Category]) -> Optional[frozenset[str]]:
        return self._sets.get(_tag_name(parse_tag(tag)))

    def contains(self, tag: Union[str, Category], host: str) -> bool:
        """Exact-match lookup of host in one tag's set."""
        members = self._sets.get(_tag_name(parse_tag(tag)))
        return members is not None and host in members

    def contains_any(self, host: str) -> bool:
        """True if host is in any registered set."""
        return any(
            host in members
            for members in (self._sets.get(_tag_name(tag)) for tag in OVERRIDE_TAGS)
            if members is not None
        )
