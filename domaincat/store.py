"""Runtime domain categorization.

A CategoryStore owns the immutable dictionary (loaded once, lazily) and
the override registry. Create one at startup and share it; every query
method is safe to call from any number of threads.

Usage:
    store = CategoryStore.from_path("domains.dcat")
    store.register("ads", ["ads.internal.example"])
    store.is_ad_website_url_clean("https://cdn.ads.example.com/pixel.gif")
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from domaincat.categories import NETWORKING, Category, OverrideTag
from domaincat.domains import iter_walk
from domaincat.errors import MalformedArtifact
from domaincat.overrides import OverrideRegistry
from domaincat.pruner import prune_redundant
from domaincat.succinct import DomainMap, build_map_bytes
from domaincat.urls import get_host_from_url

logger = logging.getLogger(__name__)


class CategoryStore:
    """Dictionary plus overrides, with the public query surface."""

    def __init__(
        self,
        loader: Callable[[], bytes],
        overrides: Optional[OverrideRegistry] = None,
    ) -> None:
        """Initialize the store.

        Args:
            loader: Returns artifact bytes; called once, on first use
            overrides: Registry to consult (a fresh one by default)
        """
        self._loader = loader
        self._map: Optional[DomainMap] = None
        self._lock = threading.Lock()
        self.overrides = overrides or OverrideRegistry()

    @classmethod
    def from_path(cls, path: Union[str, Path], **kwargs) -> "CategoryStore":
        path = Path(path).expanduser()
        return cls(path.read_bytes, **kwargs)

    @classmethod
    def from_bytes(cls, data: bytes, **kwargs) -> "CategoryStore":
        return cls(lambda: data, **kwargs)

    @classmethod
    def from_mapping(cls, mapping: dict[str, int], prune: bool = True, **kwargs) -> "CategoryStore":
        """Build the dictionary in memory from a domain -> mask mapping."""
        if prune:
            mapping = prune_redundant(mapping)
        return cls.from_bytes(build_map_bytes(mapping), **kwargs)

    # -------------------------------------------------------------------
    # Dictionary lifecycle
    # -------------------------------------------------------------------

    def load(self) -> DomainMap:
        """Return the dictionary, loading it on first call.

        Concurrent first callers wait for a single load.

        Raises:
            MalformedArtifact: If the artifact cannot be read or decoded
        """
        domain_map = self._map
        if domain_map is not None:
            return domain_map

        with self._lock:
            if self._map is None:
                try:
                    data = self._loader()
                except OSError as e:
                    raise MalformedArtifact(f"Cannot read artifact: {e}") from e
                self._map = DomainMap.from_bytes(data)
                logger.info(f"Loaded domain dictionary ({len(self._map)} entries)")
            return self._map

    @property
    def loaded(self) -> bool:
        return self._map is not None

    def register(self, tag: Union[str, Category], domains: Iterable[str]) -> frozenset[str]:
        """Register an override set (see OverrideRegistry.register)."""
        return self.overrides.register(tag, domains)

    # -------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------

    def category_mask_for(self, host: str) -> int:
        """OR of the masks of host and each of its ancestors.

        Overrides are not included.
        """
        domain_map = self.load()
        mask = 0
        for domain in iter_walk(host.lower()):
            mask |= domain_map.get(domain)
        return mask

    def has_category(self, host: str, category: Category) -> bool:
        """True if host falls in category via the dictionary or an exact override."""
        if self.category_mask_for(host) & category.bit:
            return True
        return self.overrides.contains(category, host.lower())

    def is_any_bad(self, host: str) -> bool:
        """True if host is in any dictionary category or any override set."""
        if self.category_mask_for(host):
            return True
        return self.overrides.contains_any(host.lower())

    def categories_for(self, host: str) -> list[OverrideTag]:
        """All categories (and "networking") that apply to host."""
        tags: list[OverrideTag] = []
        mask = self.category_mask_for(host)
        host_lower = host.lower()
        for category in Category:
            if mask & category.bit or self.overrides.contains(category, host_lower):
                tags.append(category)
        if self.overrides.contains(NETWORKING, host_lower):
            tags.append(NETWORKING)
        return tags

    # -------------------------------------------------------------------
    # Public query surface (hosts)
    # -------------------------------------------------------------------

    def is_bad_website_url(self, host: str) -> bool:
        return self.has_category(host, Category.BAD)

    def is_ad_website_url(self, host: str) -> bool:
        return self.has_category(host, Category.ADS)

    def is_tracking_website_url(self, host: str) -> bool:
        return self.has_category(host, Category.TRACKING)

    def is_gambling_website_url(self, host: str) -> bool:
        return self.has_category(host, Category.GAMBLING)

    def is_networking_url(self, host: str) -> bool:
        """Networking has no dictionary bit; only its override set counts."""
        return self.overrides.contains(NETWORKING, host.lower())

    def is_url_bad(self, host: str) -> bool:
        return self.is_any_bad(host)

    # -------------------------------------------------------------------
    # Public query surface (full URLs)
    # -------------------------------------------------------------------

    def _query_url(self, url: str, query: Callable[[str], bool]) -> bool:
        host = get_host_from_url(url)
        if host is None:
            return False
        return query(host)

    def is_bad_website_url_clean(self, url: str) -> bool:
        return self._query_url(url, self.is_bad_website_url)

    def is_ad_website_url_clean(self, url: str) -> bool:
        return self._query_url(url, self.is_ad_website_url)

    def is_tracking_website_url_clean(self, url: str) -> bool:
        return self._query_url(url, self.is_tracking_website_url)

    def is_gambling_website_url_clean(self, url: str) -> bool:
        return self._query_url(url, self.is_gambling_website_url)

    def is_networking_url_clean(self, url: str) -> bool:
        return self._query_url(url, self.is_networking_url)

    def is_url_bad_clean(self, url: str) -> bool:
        return self._query_url(url, self.is_url_bad)
