"""domaincat - Domain categorization for request filtering."""

from domaincat.categories import NETWORKING, Category, categories_in, mask_of
from domaincat.errors import (
    BuildError,
    DomainCatError,
    MalformedArtifact,
    RegistrationConflict,
    SourceError,
)
from domaincat.store import CategoryStore
from domaincat.urls import get_host_from_url

__version__ = "0.1.0"

__all__ = [
    "NETWORKING",
    "Category",
    "categories_in",
    "mask_of",
    "BuildError",
    "DomainCatError",
    "MalformedArtifact",
    "RegistrationConflict",
    "SourceError",
    "CategoryStore",
    "get_host_from_url",
]
