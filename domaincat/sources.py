"""Domain list sources and fetching.

Downloads and caches public blocklists (hosts files, adblock lists,
plain domain lists) used to build the dictionary. Which sources are
used is decided by category and tier; the build pipeline only sees
(text, dialect, category).
"""

import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

import requests
from cachetools import TTLCache

from domaincat.categories import Category
from domaincat.errors import SourceError
from domaincat.normalizer import Dialect

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "domaincat/0.1 (+list builder)"
DEFAULT_MEMORY_CACHE_SIZE = 64


class Tier(str, Enum):
    """Size tier of the source selection. Each tier includes the lower ones."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    def includes(self, other: "Tier") -> bool:
        return other.rank <= self.rank


_TIER_ORDER = [Tier.SMALL, Tier.MEDIUM, Tier.LARGE]


@dataclass(frozen=True)
class ListSource:
    """One domain list.

    Attributes:
        name: Identifier, also used as the cache file name
        category: Category its domains are filed under
        dialect: Text format of the list
        location: http(s) URL or local file path
        tier: Smallest tier that includes this source
        skip_lines: Leading header lines to drop before parsing
        required: If True, a fetch failure aborts the build
    """

    name: str
    category: Category
    dialect: Dialect
    location: str
    tier: Tier = Tier.SMALL
    skip_lines: int = 0
    required: bool = False

    @property
    def is_remote(self) -> bool:
        return self.location.startswith(("http://", "https://"))


@dataclass(frozen=True)
class DirectorySource:
    """A repository directory in which every file is a domain list.

    The file list comes from a GitHub contents API listing and is
    expanded into one ListSource per file when a build runs.

    Attributes:
        name: Prefix for the expanded source names
        listing_url: Contents API URL returning the directory entries
        raw_base: Base URL that entry paths are appended to for download
        dialect: Text format shared by every file
        skip: File names never used
        file_categories: Category of specific file names
        default_category: Category of every other file
        tier: Smallest tier that includes this directory
    """

    name: str
    listing_url: str
    raw_base: str
    dialect: Dialect
    skip: frozenset[str] = frozenset()
    file_categories: dict[str, Category] = field(default_factory=dict)
    default_category: Category = Category.BAD
    tier: Tier = Tier.SMALL

    def category_for(self, filename: str) -> Category:
        return self.file_categories.get(filename, self.default_category)

    def expand(self, entries: Iterable[dict[str, Any]]) -> list[ListSource]:
        """Turn contents API entries into list sources.

        Entries that are not files, or whose name is skipped, are dropped.
        """
        sources = []
        for entry in entries:
            filename = entry.get("name") or ""
            if not filename or filename in self.skip or entry.get("type") != "file":
                continue
            path = entry.get("path") or filename
            sources.append(
                ListSource(
                    f"{self.name}-{filename.lower()}",
                    self.category_for(filename),
                    self.dialect,
                    f"{self.raw_base}/{path}",
                    self.tier,
                )
            )
        return sources


_BLP = "https://raw.githubusercontent.com/blocklistproject/Lists/master/alt-version"
_ONEHOSTS = "https://raw.githubusercontent.com/badmojr/1Hosts/master/Lite"
_MALTRAIL = "https://raw.githubusercontent.com/stamparm/maltrail/master/trails/static"

DEFAULT_SOURCES: tuple[ListSource, ...] = (
    # Small tier
    ListSource(
        "1hosts-lite-domains", Category.TRACKING, Dialect.PLAIN,
        f"{_ONEHOSTS}/domains.txt", skip_lines=15,
    ),
    ListSource(
        "1hosts-lite-adblock", Category.ADS, Dialect.ADBLOCK,
        f"{_ONEHOSTS}/adblock.txt", skip_lines=15,
    ),
    ListSource(
        "spider-bad-websites", Category.BAD, Dialect.QUOTED_CSV,
        "https://raw.githubusercontent.com/spider-rs/bad_websites/main/websites.txt",
    ),
    ListSource(
        "stevenblack-hosts", Category.BAD, Dialect.HOSTS,
        "https://raw.githubusercontent.com/StevenBlack/hosts/master/hosts",
    ),
    ListSource("blp-malware", Category.BAD, Dialect.PLAIN, f"{_BLP}/malware-nl.txt"),
    ListSource("blp-phishing", Category.BAD, Dialect.PLAIN, f"{_BLP}/phishing-nl.txt"),
    ListSource("blp-scam", Category.BAD, Dialect.PLAIN, f"{_BLP}/scam-nl.txt"),
    ListSource(
        "urlhaus-filter-domains", Category.BAD, Dialect.PLAIN,
        "https://malware-filter.gitlab.io/malware-filter/urlhaus-filter-domains.txt",
    ),
    # Medium tier: threat-intelligence hardening
    ListSource("blp-ransomware", Category.BAD, Dialect.PLAIN, f"{_BLP}/ransomware-nl.txt", Tier.MEDIUM),
    ListSource("blp-fraud", Category.BAD, Dialect.PLAIN, f"{_BLP}/fraud-nl.txt", Tier.MEDIUM),
    ListSource("blp-abuse", Category.BAD, Dialect.PLAIN, f"{_BLP}/abuse-nl.txt", Tier.MEDIUM),
    ListSource(
        "phishing-database-active", Category.BAD, Dialect.PLAIN,
        "https://raw.githubusercontent.com/mitchellkrogza/Phishing.Database/master/phishing-domains-ACTIVE.txt",
        Tier.MEDIUM,
    ),
    ListSource(
        "maltrail-suspicious", Category.BAD, Dialect.PLAIN,
        f"{_MALTRAIL}/suspicious/domain.txt", Tier.MEDIUM,
    ),
    # Large tier: comprehensive protection
    ListSource("blp-redirect", Category.BAD, Dialect.PLAIN, f"{_BLP}/redirect-nl.txt", Tier.LARGE),
    ListSource("blp-tracking", Category.TRACKING, Dialect.PLAIN, f"{_BLP}/tracking-nl.txt", Tier.LARGE),
    ListSource("blp-ads", Category.ADS, Dialect.PLAIN, f"{_BLP}/ads-nl.txt", Tier.LARGE),
    ListSource(
        "maltrail-malware", Category.BAD, Dialect.PLAIN,
        f"{_MALTRAIL}/malware/domain.txt", Tier.LARGE,
    ),
    ListSource(
        "urlhaus-hostfile", Category.BAD, Dialect.HOSTS,
        "https://urlhaus.abuse.ch/downloads/hostfile/", Tier.LARGE,
    ),
)

SHADOW_WHISPERER = DirectorySource(
    "shadow",
    "https://api.github.com/repos/ShadowWhisperer/BlockLists/contents/RAW",
    "https://raw.githubusercontent.com/ShadowWhisperer/BlockLists/master",
    Dialect.PLAIN,
    skip=frozenset({
        "Cryptocurrency",
        "Dating",
        "Fonts",
        "Microsoft",
        "Marketing",
        "Wild_Tracking",
        "Free",
    }),
    file_categories={
        "Ads": Category.ADS,
        "Wild_Ads": Category.ADS,
        "Tracking": Category.TRACKING,
        "Wild_Tracking": Category.TRACKING,
        "Gambling": Category.GAMBLING,
    },
)

DEFAULT_DIRECTORIES: tuple[DirectorySource, ...] = (SHADOW_WHISPERER,)


def select_sources(
    catalog: Iterable[ListSource],
    categories: Iterable[Category],
    tier: Tier,
) -> list[ListSource]:
    """Keep sources whose category is enabled and whose tier is included."""
    enabled = set(categories)
    return [s for s in catalog if s.category in enabled and tier.includes(s.tier)]


class SourceFetcher:
    """Fetches list sources, caching remote ones on disk.

    Remote lists are refreshed when their cache file is older than the
    update interval. If a refresh fails and a stale copy exists, the
    stale copy is used.
    """

    def __init__(
        self,
        cache_dir: Path,
        update_interval_hours: int = 24,
        timeout_seconds: int = 30,
        offline: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """Initialize the fetcher.

        Args:
            cache_dir: Directory to cache downloaded lists
            update_interval_hours: How often to refresh lists
            timeout_seconds: HTTP request timeout
            offline: Never download; serve remote sources from cache only
            user_agent: User-Agent header sent with downloads
        """
        self.cache_dir = Path(cache_dir).expanduser()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.update_interval = timedelta(hours=update_interval_hours)
        self.timeout = timeout_seconds
        self.offline = offline
        self.user_agent = user_agent
        # Several sources may share a URL within one build
        self._memory: TTLCache[str, str] = TTLCache(
            maxsize=DEFAULT_MEMORY_CACHE_SIZE,
            ttl=self.update_interval.total_seconds(),
        )

    def fetch(self, source: ListSource) -> str:
        """Return the raw text of a source.

        Raises:
            SourceError: If the source cannot be read or downloaded and
                no cached copy exists
        """
        if not source.is_remote:
            return self._read_local(source)

        cached = self._memory.get(source.location)
        if cached is not None:
            return cached

        text = self._fetch_remote(source.name, source.location, self.cache_file(source))
        self._memory[source.location] = text
        return text

    def list_directory(self, directory: DirectorySource) -> list[ListSource]:
        """Fetch a directory listing and expand it into list sources.

        The listing is cached on disk like any remote list.

        Raises:
            SourceError: If the listing cannot be fetched or is not a
                JSON array of entries
        """
        text = self._memory.get(directory.listing_url)
        if text is None:
            text = self._fetch_remote(
                directory.name, directory.listing_url, self.listing_file(directory)
            )

        try:
            entries = json.loads(text)
        except ValueError as e:
            raise SourceError(directory.name, f"invalid directory listing: {e}") from e
        if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
            raise SourceError(directory.name, "directory listing is not a list of entries")

        self._memory[directory.listing_url] = text
        sources = directory.expand(entries)
        logger.debug(f"Directory {directory.name}: {len(sources)} lists")
        return sources

    def cache_file(self, source: ListSource) -> Path:
        """Cache path for a remote source (name plus a short URL hash)."""
        return self._cache_path(source.name, source.location, ".txt")

    def listing_file(self, directory: DirectorySource) -> Path:
        """Cache path for a directory listing."""
        return self._cache_path(f"{directory.name}-listing", directory.listing_url, ".json")

    def _cache_path(self, name: str, url: str, suffix: str) -> Path:
        safe_name = re.sub(r"[^A-Za-z0-9._-]", "_", name)
        url_hash = hashlib.sha1(url.encode()).hexdigest()[:8]
        return self.cache_dir / f"{safe_name}-{url_hash}{suffix}"

    def _read_local(self, source: ListSource) -> str:
        path = Path(source.location).expanduser()
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise SourceError(source.name, f"cannot read {path}: {e}") from e

    def _fetch_remote(self, name: str, url: str, cache_file: Path) -> str:
        if self.offline:
            if cache_file.exists():
                return cache_file.read_text(encoding="utf-8")
            raise SourceError(name, "offline and not cached")

        if not self._is_stale(cache_file):
            logger.debug(f"List {name} is up to date")
            return cache_file.read_text(encoding="utf-8")

        logger.info(f"Updating list: {name}")
        try:
            self._download(url, cache_file)
        except requests.RequestException as e:
            if cache_file.exists():
                logger.warning(f"Failed to update {name}, using stale cache: {e}")
            else:
                raise SourceError(name, f"download failed: {e}") from e

        return cache_file.read_text(encoding="utf-8")

    def _is_stale(self, cache_file: Path) -> bool:
        """Check if a cached list is missing or older than update_interval."""
        if not cache_file.exists():
            return True

        mtime = datetime.fromtimestamp(cache_file.stat().st_mtime)
        age = datetime.now() - mtime
        return age > self.update_interval

    def _download(self, url: str, cache_file: Path) -> None:
        """Download a list and save it to the cache.

        Raises:
            requests.RequestException: If download fails
        """
        resp = requests.get(url, timeout=self.timeout, headers={"User-Agent": self.user_agent})
        resp.raise_for_status()

        # Write to temp file first, then rename (atomic)
        temp_file = cache_file.with_suffix(".tmp")
        temp_file.write_text(resp.text, encoding="utf-8")
        temp_file.replace(cache_file)

        logger.info(f"Downloaded {cache_file.name} ({len(resp.text)} bytes)")

