"""Merge normalized domains from many sources into one category mapping."""

import logging
from typing import Iterable, Optional

from domaincat.categories import Category
from domaincat.normalizer import Dialect, iter_domains

logger = logging.getLogger(__name__)

# Legitimate services that show up in malware/abuse lists. Removed from
# the bad category only; an ads or tracking listing still applies.
DEFAULT_WHITELIST: frozenset[str] = frozenset({
    "anydesk.com",
    "firstaidbeauty.com",
    "teads.com",
    "appchair.com",
    "ninjacat.io",
    "oceango.net",
    "center.io",
    "bing.com",
    "unity3d.com",
    "adguard.com",
    "bitdefender.com",
    "blogspot.com",
    "bytedance.com",
    "comcast.net",
    "duckdns.org",
    "dyndns.org",
    "fontawesome.com",
    "grammarly.com",
    "onenote.com",
    "opendns.com",
    "surfshark.com",
    "teamviewer.com",
    "tencent.com",
    "tiktok.com",
    "yandex.net",
    "zoho.com",
    "tiktokcdn-us.com",
    "tiktokcdn.com",
    "tiktokv.com",
    "tiktokrow-cdn.com",
    "tiktokv.us",
    "wpengine.com",
})


class Aggregator:
    """Collects deduplicated domain sets per category.

    Usage:
        agg = Aggregator()
        agg.add_text(hosts_body, Dialect.HOSTS, Category.BAD)
        agg.add("ads.example.com", Category.ADS)
        mapping = agg.merge()  # {"ads.example.com": 2, ...}
    """

    def __init__(
        self,
        whitelist: Optional[Iterable[str]] = None,
        categories: Optional[Iterable[Category]] = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            whitelist: Domains excluded from the bad category
                (defaults to DEFAULT_WHITELIST)
            categories: Categories to keep; additions for any other
                category are dropped (defaults to all)
        """
        self.whitelist = frozenset(DEFAULT_WHITELIST if whitelist is None else whitelist)
        self.categories = frozenset(Category if categories is None else categories)
        self._sets: dict[Category, set[str]] = {category: set() for category in Category}
        self.whitelisted = 0

    def add(self, domain: str, category: Category) -> bool:
        """Add one domain. Returns True if it was new for that category."""
        if not domain or category not in self.categories:
            return False
        bucket = self._sets[category]
        if domain in bucket:
            return False
        bucket.add(domain)
        return True

    def add_many(self, domains: Iterable[str], category: Category) -> int:
        """Add domains to a category. Returns the number of new entries."""
        return sum(1 for domain in domains if self.add(domain, category))

    def add_text(
        self,
        text: str,
        dialect: Dialect,
        category: Category,
        skip_lines: int = 0,
    ) -> int:
        """Normalize a raw list body and add its domains.

        Returns:
            Number of domains that were new for the category
        """
        return self.add_many(iter_domains(text, dialect, skip_lines), category)

    def count(self, category: Category) -> int:
        return len(self._sets[category])

    def counts(self) -> dict[Category, int]:
        return {category: len(bucket) for category, bucket in self._sets.items()}

    def merge(self) -> dict[str, int]:
        """Apply the whitelist and merge every category into domain -> mask.

        A domain listed under several categories gets all their bits.
        """
        bad = self._sets[Category.BAD]
        whitelisted = bad & self.whitelist
        if whitelisted:
            logger.info(f"Whitelisted {len(whitelisted)} domains from the bad category")
        self.whitelisted = len(whitelisted)

        merged: dict[str, int] = {}
        for category, bucket in self._sets.items():
            if category not in self.categories:
                continue
            members = bucket - whitelisted if category is Category.BAD else bucket
            for domain in members:
                merged[domain] = merged.get(domain, 0) | category.bit

        logger.debug(f"Merged {len(merged)} unique domains")
        return merged
