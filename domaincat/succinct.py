"""Compact domain -> category mask dictionary and its artifact format.

The dictionary is a marisa-trie RecordTrie holding one unsigned 32-bit
record per key, wrapped in a small versioned header:

    offset  size  field
    0       4     magic b"DCAT"
    4       2     format version
    6       2     reserved (0)
    8       4     entry count
    12      4     category mask known to the builder
    16      32    SHA-256 of the payload
    48      ...   payload (RecordTrie bytes, empty for an empty map)

All integers are little-endian.
"""

import hashlib
import logging
import struct
from pathlib import Path
from typing import Iterable, Iterator, Optional

import marisa_trie

from domaincat.categories import ALL_CATEGORIES_MASK
from domaincat.errors import BuildError, MalformedArtifact

logger = logging.getLogger(__name__)

MAGIC = b"DCAT"
FORMAT_VERSION = 1
HEADER = struct.Struct("<4sHHII32s")
RECORD_FORMAT = "<I"
MAX_MASK = 0xFFFFFFFF


class DomainMapBuilder:
    """Builds a serialized DomainMap from keys fed in ascending order.

    Usage:
        builder = DomainMapBuilder()
        for domain, mask in sorted(mapping.items()):
            builder.insert(domain, mask)
        data = builder.finish()
    """

    def __init__(self) -> None:
        self._entries: list[tuple[str, tuple[int]]] = []
        self._last_key: Optional[str] = None
        self._finished = False

    def insert(self, key: str, mask: int) -> None:
        """Append one entry.

        Raises:
            BuildError: If the key is empty, contains NUL, cannot be
                encoded as UTF-8, is not strictly greater than the
                previous key, or the mask is out of range
        """
        if self._finished:
            raise BuildError("Builder already finished")
        if not key:
            raise BuildError("Empty key")
        if "\x00" in key:
            raise BuildError(f"Key {key!r} contains NUL")
        try:
            key.encode("utf-8")
        except UnicodeEncodeError as e:
            raise BuildError(f"Key {key!r} is not valid UTF-8: {e}") from e
        if self._last_key is not None and key <= self._last_key:
            if key == self._last_key:
                raise BuildError(f"Duplicate key {key!r}")
            raise BuildError(f"Key {key!r} inserted after {self._last_key!r} (keys must ascend)")
        if not 0 < mask <= MAX_MASK:
            raise BuildError(f"Mask {mask} for {key!r} out of range")

        self._entries.append((key, (mask,)))
        self._last_key = key

    def extend(self, items: Iterable[tuple[str, int]]) -> None:
        for key, mask in items:
            self.insert(key, mask)

    def finish(self) -> bytes:
        """Serialize the entries into artifact bytes."""
        self._finished = True

        if self._entries:
            payload = marisa_trie.RecordTrie(RECORD_FORMAT, self._entries).tobytes()
        else:
            payload = b""

        header = HEADER.pack(
            MAGIC,
            FORMAT_VERSION,
            0,
            len(self._entries),
            ALL_CATEGORIES_MASK,
            hashlib.sha256(payload).digest(),
        )
        logger.debug(f"Serialized {len(self._entries)} entries ({len(payload)} payload bytes)")
        return header + payload


def build_map_bytes(mapping: dict[str, int]) -> bytes:
    """Serialize a domain -> mask mapping, sorting the keys first."""
    builder = DomainMapBuilder()
    builder.extend(sorted(mapping.items()))
    return builder.finish()


class DomainMap:
    """Immutable, read-only domain -> category mask lookup.

    Safe to share between threads once constructed.
    """

    def __init__(
        self,
        trie: Optional[marisa_trie.RecordTrie],
        entry_count: int,
        category_mask: int,
    ) -> None:
        self._trie = trie
        self.entry_count = entry_count
        self.category_mask = category_mask

    @classmethod
    def from_bytes(cls, data: bytes) -> "DomainMap":
        """Deserialize artifact bytes.

        Raises:
            MalformedArtifact: If the header, digest or payload is invalid
        """
        if len(data) < HEADER.size:
            raise MalformedArtifact(f"Artifact too short ({len(data)} bytes)")

        magic, version, _reserved, entry_count, category_mask, digest = HEADER.unpack_from(data)
        if magic != MAGIC:
            raise MalformedArtifact(f"Bad magic {magic!r}")
        if version != FORMAT_VERSION:
            raise MalformedArtifact(f"Unsupported format version {version}")

        payload = data[HEADER.size:]
        if hashlib.sha256(payload).digest() != digest:
            raise MalformedArtifact("Payload checksum mismatch")

        unknown_bits = category_mask & ~ALL_CATEGORIES_MASK
        if unknown_bits:
            logger.warning(
                f"Artifact uses category bits unknown to this version (0x{unknown_bits:x}); "
                "they will be ignored"
            )

        if not payload:
            if entry_count:
                raise MalformedArtifact(f"Empty payload but header declares {entry_count} entries")
            return cls(None, 0, category_mask)

        trie = marisa_trie.RecordTrie(RECORD_FORMAT)
        try:
            trie.frombytes(payload)
        except Exception as e:
            raise MalformedArtifact(f"Failed to load dictionary payload: {e}") from e
        return cls(trie, entry_count, category_mask)

    @classmethod
    def from_path(cls, path: Path) -> "DomainMap":
        return cls.from_bytes(Path(path).expanduser().read_bytes())

    def get(self, key: str) -> int:
        """Return the mask stored for key, or 0 if absent.

        Keys the builder would reject (NUL, unencodable text) are absent.
        """
        if self._trie is None or not key or "\x00" in key:
            return 0
        try:
            key.encode("utf-8")
        except UnicodeEncodeError:
            return 0
        try:
            return self._trie[key][0][0]
        except KeyError:
            return 0

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) != 0

    def __len__(self) -> int:
        return self.entry_count

    def items(self) -> Iterator[tuple[str, int]]:
        """Iterate (domain, mask) pairs in ascending key order."""
        if self._trie is None:
            return iter(())
        return iter(sorted((key, record[0]) for key, record in self._trie.items()))


def write_artifact(path: Path, data: bytes) -> None:
    """Write artifact bytes atomically (temp file, then rename)."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_file = path.with_suffix(path.suffix + ".tmp")
    temp_file.write_bytes(data)
    temp_file.replace(path)
    logger.info(f"Wrote {path} ({len(data)} bytes)")
