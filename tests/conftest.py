"""Shared fixtures: a small seed dictionary built through the real pipeline stages."""

import pytest

from domaincat.aggregator import Aggregator
from domaincat.categories import Category
from domaincat.normalizer import Dialect
from domaincat.store import CategoryStore

SEED_BAD_HOSTS = """\
# Seed hosts file
127.0.0.1 localhost
0.0.0.0 0.0.0.0
0.0.0.0 wingwahlau.com
0.0.0.0 www.wingwahlau.com
0.0.0.0 10minutesto1.net
0.0.0.0 malware.example.org
::1 ip6-localhost
"""

SEED_ADS_ADBLOCK = """\
! Seed adblock list
||admob.google.com^
||doubleclick.net^
||stats.doubleclick.net^
"""

SEED_TRACKING_PLAIN = """\
# Seed tracking list
2.atlasroofing.com
telemetry.example.org  # inline note
stats.doubleclick.net
"""

SEED_GAMBLING_CSV = """\
"casino-royale.bet",
"slots.example.net",
"""


@pytest.fixture()
def seed_mapping() -> dict[str, int]:
    """Merged (unpruned) domain -> mask mapping for the seed lists."""
    agg = Aggregator()
    agg.add_text(SEED_BAD_HOSTS, Dialect.HOSTS, Category.BAD)
    agg.add_text(SEED_ADS_ADBLOCK, Dialect.ADBLOCK, Category.ADS)
    agg.add_text(SEED_TRACKING_PLAIN, Dialect.PLAIN, Category.TRACKING)
    agg.add_text(SEED_GAMBLING_CSV, Dialect.QUOTED_CSV, Category.GAMBLING)
    return agg.merge()


@pytest.fixture()
def store(seed_mapping: dict[str, int]) -> CategoryStore:
    """CategoryStore over the pruned seed dictionary."""
    return CategoryStore.from_mapping(seed_mapping)
