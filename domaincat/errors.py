"""Exceptions raised by domaincat."""


class DomainCatError(Exception):
    """Base class for domaincat errors."""


class BuildError(DomainCatError):
    """Invalid input to the dictionary builder (unsorted, duplicate or empty keys).

    Stops artifact generation; never raised at query time.
    """


class MalformedArtifact(DomainCatError):
    """A dictionary artifact failed validation or deserialization."""


class RegistrationConflict(DomainCatError):
    """An override tag was registered more than once.

    The first registration stays in place.
    """

    def __init__(self, tag: str) -> None:
        super().__init__(f"Override set for {tag!r} is already registered")
        self.tag = tag


class SourceError(DomainCatError):
    """A list source could not be fetched or read."""

    def __init__(self, source_name: str, reason: str) -> None:
        super().__init__(f"Source {source_name!r}: {reason}")
        self.source_name = source_name
        self.reason = reason
