"""Turn raw list lines into canonical bare domains.

Each list source declares one of four dialects:

- hosts:      "0.0.0.0 ads.example.com"
- plain:      "ads.example.com  # inline note"
- adblock:    "||ads.example.com^"
- quoted_csv: '"ads.example.com",'

Output is lower-cased; a line yields at most one domain.
"""

from enum import Enum
from typing import Iterator, Optional

from domaincat.domains import canonicalize


class Dialect(str, Enum):
    """Text format of a list source."""

    HOSTS = "hosts"
    PLAIN = "plain"
    ADBLOCK = "adblock"
    QUOTED_CSV = "quoted_csv"


# Hosts-file aliases that are never blocklist entries
RESERVED_HOST_ALIASES = frozenset({
    "localhost",
    "0.0.0.0",
    "local",
    "localhost.localdomain",
    "broadcasthost",
})


def _normalize_hosts(line: str) -> Optional[str]:
    if not line or line.startswith("#"):
        return None

    parts = line.split()
    if len(parts) < 2:
        return None

    # parts[0] is the sink IP (0.0.0.0 / 127.0.0.1)
    domain = parts[1]
    alias = domain.lower()
    if alias in RESERVED_HOST_ALIASES or "ip6-" in alias:
        return None
    return domain


def _normalize_plain(line: str) -> Optional[str]:
    if not line or line.startswith("#"):
        return None
    return line.split()[0]


def _normalize_adblock(line: str) -> Optional[str]:
    # "!" starts an adblock comment
    if not line or line.startswith("!"):
        return None

    if line.startswith("||"):
        line = line[2:]
    if line.endswith("^"):
        line = line[:-1]
    return line or None


def _normalize_quoted_csv(line: str) -> Optional[str]:
    return line.strip('",').strip() or None


_NORMALIZERS = {
    Dialect.HOSTS: _normalize_hosts,
    Dialect.PLAIN: _normalize_plain,
    Dialect.ADBLOCK: _normalize_adblock,
    Dialect.QUOTED_CSV: _normalize_quoted_csv,
}


def normalize_line(line: str, dialect: Dialect) -> Optional[str]:
    """Normalize one raw line.

    Args:
        line: Raw line from a list source
        dialect: Declared dialect of the source

    Returns:
        Canonical domain, or None if the line carries no domain
    """
    domain = _NORMALIZERS[Dialect(dialect)](line.strip())
    if domain is None:
        return None

    domain = canonicalize(domain)
    if not domain or "\x00" in domain:
        return None
    return domain


def iter_domains(text: str, dialect: Dialect, skip_lines: int = 0) -> Iterator[str]:
    """Yield canonical domains from a whole list body.

    Args:
        text: Raw list contents
        dialect: Declared dialect of the source
        skip_lines: Number of leading header lines to drop before parsing

    Yields:
        Canonical domains, in source order (duplicates included)
    """
    for index, line in enumerate(text.splitlines()):
        if index < skip_lines:
            continue
        domain = normalize_line(line, dialect)
        if domain:
            yield domain
