"""Remove dictionary entries already implied by an ancestor.

The matcher walks up parent domains, so "sub.example.com" with mask 1 is
redundant when "example.com" carries bit 1 as well. Dropping these keeps
the artifact small without changing any lookup result.
"""

import logging
from typing import Optional

from domaincat.domains import iter_ancestors

logger = logging.getLogger(__name__)


def find_covering_ancestor(domain: str, mask: int, mapping: dict[str, int]) -> Optional[str]:
    """Return the nearest ancestor whose mask contains every bit of mask.

    Args:
        domain: Domain being checked
        mask: Its category mask
        mapping: Domain -> mask lookup

    Returns:
        The covering ancestor, or None if the entry is not redundant
    """
    for ancestor in iter_ancestors(domain):
        ancestor_mask = mapping.get(ancestor)
        if ancestor_mask is not None and ancestor_mask & mask == mask:
            return ancestor
    return None


def prune_redundant(mapping: dict[str, int]) -> dict[str, int]:
    """Return a copy of mapping without redundant subdomain entries.

    Every decision is made against the input mapping, never against the
    partially pruned result, so the outcome does not depend on iteration
    order. This is safe: if an ancestor is itself pruned, whatever
    covered it also covers the child.

    Args:
        mapping: Domain -> category mask

    Returns:
        New mapping, with the same iteration order for the kept entries
    """
    pruned = {
        domain: mask
        for domain, mask in mapping.items()
        if find_covering_ancestor(domain, mask, mapping) is None
    }

    removed = len(mapping) - len(pruned)
    if removed:
        logger.info(f"Pruned {removed} redundant subdomain entries ({len(pruned)} remain)")
    return pruned
