"""Dictionary build pipeline.

sources -> normalizer -> aggregator -> pruner -> succinct map builder
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from domaincat.aggregator import Aggregator
from domaincat.categories import Category, categories_in
from domaincat.errors import SourceError
from domaincat.pruner import prune_redundant
from domaincat.sources import DirectorySource, ListSource, SourceFetcher, Tier, select_sources
from domaincat.succinct import build_map_bytes

logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """Statistics from one dictionary build."""

    sources_used: list[str] = field(default_factory=list)
    sources_skipped: dict[str, str] = field(default_factory=dict)  # name -> reason
    domains_per_category: dict[Category, int] = field(default_factory=dict)
    whitelisted: int = 0
    merged_entries: int = 0
    pruned_entries: int = 0
    final_entries: int = 0
    entries_per_category: dict[Category, int] = field(default_factory=dict)
    artifact_bytes: int = 0


def count_by_category(mapping: dict[str, int]) -> dict[Category, int]:
    """Count entries carrying each category bit."""
    counts = {category: 0 for category in Category}
    for mask in mapping.values():
        for category in categories_in(mask):
            counts[category] += 1
    return counts


def resolve_sources(
    catalog: Iterable[ListSource],
    directories: Iterable[DirectorySource],
    fetcher: SourceFetcher,
    categories: Iterable[Category],
    tier: Tier,
) -> list[ListSource]:
    """Expand directory sources, then select by category and tier.

    A directory whose listing cannot be fetched is skipped with a warning.
    """
    expanded = list(catalog)
    for directory in directories:
        if not tier.includes(directory.tier):
            continue
        try:
            expanded.extend(fetcher.list_directory(directory))
        except SourceError as e:
            logger.warning(f"Skipping directory {directory.name}: {e.reason}")
    return select_sources(expanded, categories, tier)


def build_dictionary(
    sources: Iterable[ListSource],
    fetcher: SourceFetcher,
    whitelist: Optional[Iterable[str]] = None,
    categories: Optional[Iterable[Category]] = None,
) -> tuple[dict[str, int], BuildReport]:
    """Fetch, normalize, merge and prune every source.

    Args:
        sources: Sources to include
        fetcher: Fetcher used to obtain each source's text
        whitelist: Domains excluded from the bad category
            (defaults to the built-in whitelist)
        categories: Categories to keep (defaults to all)

    Returns:
        Tuple of (pruned domain -> mask mapping, report)

    Raises:
        SourceError: If a required source cannot be fetched
    """
    report = BuildReport()
    aggregator = Aggregator(whitelist=whitelist, categories=categories)

    for source in sources:
        try:
            text = fetcher.fetch(source)
        except SourceError as e:
            if source.required:
                raise
            logger.warning(f"Skipping source {source.name}: {e.reason}")
            report.sources_skipped[source.name] = e.reason
            continue

        added = aggregator.add_text(text, source.dialect, source.category, source.skip_lines)
        report.sources_used.append(source.name)
        logger.debug(f"{source.name}: {added} new {source.category.value} domains")

    report.domains_per_category = aggregator.counts()
    merged = aggregator.merge()
    report.whitelisted = aggregator.whitelisted
    report.merged_entries = len(merged)

    pruned = prune_redundant(merged)
    report.pruned_entries = len(merged) - len(pruned)
    report.final_entries = len(pruned)
    report.entries_per_category = count_by_category(pruned)

    logger.info(
        f"Built dictionary from {len(report.sources_used)} sources: "
        f"{report.final_entries} entries ({report.pruned_entries} pruned)"
    )
    return pruned, report


def build_artifact(
    sources: Iterable[ListSource],
    fetcher: SourceFetcher,
    whitelist: Optional[Iterable[str]] = None,
    categories: Optional[Iterable[Category]] = None,
) -> tuple[bytes, BuildReport]:
    """Run build_dictionary and serialize the result.

    Raises:
        SourceError: If a required source cannot be fetched
        BuildError: If the mapping cannot be serialized
    """
    mapping, report = build_dictionary(sources, fetcher, whitelist, categories)
    data = build_map_bytes(mapping)
    report.artifact_bytes = len(data)
    return data, report
