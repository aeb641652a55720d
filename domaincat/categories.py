"""Domain categories and their bitmask encoding.

The bit assigned to each category is part of the artifact format: a
dictionary built by one version is read by another, so existing bits
are never renumbered. New categories take the next free bit.
"""

from enum import Enum
from typing import Iterable, Union


class Category(str, Enum):
    """Classification categories stored in the domain dictionary."""

    BAD = "bad"
    ADS = "ads"
    TRACKING = "tracking"
    GAMBLING = "gambling"

    @property
    def bit(self) -> int:
        return CATEGORY_BITS[self]


CATEGORY_BITS: dict[Category, int] = {
    Category.BAD: 1,
    Category.ADS: 2,
    Category.TRACKING: 4,
    Category.GAMBLING: 8,
}

ALL_CATEGORIES_MASK = 0
for _bit in CATEGORY_BITS.values():
    ALL_CATEGORIES_MASK |= _bit

# Generic override tag with no dictionary bit. Only reachable through
# the override registry.
NETWORKING = "networking"

OverrideTag = Union[Category, str]

OVERRIDE_TAGS: tuple[OverrideTag, ...] = (
    Category.BAD,
    Category.ADS,
    Category.TRACKING,
    Category.GAMBLING,
    NETWORKING,
)


def mask_of(categories: Iterable[Category]) -> int:
    """OR together the bits of the given categories."""
    mask = 0
    for category in categories:
        mask |= category.bit
    return mask


def categories_in(mask: int) -> list[Category]:
    """Decode a mask into its categories, in bit order.

    Bits that no known category owns are ignored.
    """
    return [category for category, bit in CATEGORY_BITS.items() if mask & bit]


def parse_category(name: str) -> Category:
    """Parse a category name (case-insensitive).

    Raises:
        ValueError: If the name is not a known category
    """
    try:
        return Category(name.strip().lower())
    except ValueError:
        valid = ", ".join(c.value for c in Category)
        raise ValueError(f"Unknown category {name!r} (expected one of: {valid})") from None


def parse_tag(name: Union[str, Category]) -> OverrideTag:
    """Map a registration name to an override tag.

    "ads", "tracking", "gambling" and "networking" map to their own
    slot. Every other name, including "bad", registers into the bad
    slot.
    """
    if isinstance(name, Category):
        return name

    name_lower = name.strip().lower()
    if name_lower == NETWORKING:
        return NETWORKING
    try:
        return Category(name_lower)
    except ValueError:
        return Category.BAD
