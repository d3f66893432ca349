"""Grading profile registry."""

from .catalog import (
    DEFAULT_PROFILE_TYPE,
    FALLBACK_PROFILE_TYPE,
    PREREQ_API_ID,
    PREREQ_AUTHENTICATION,
    PREREQ_MULTI_TENANT,
    ProfileCache,
    ProfileCatalog,
    ProfileCatalogError,
    ProfileDefinition,
    load_profile_definitions,
)
from .store import InMemoryProfileStore, ProfileRecord, ProfileStore, profile_id_for

__all__ = [
    "DEFAULT_PROFILE_TYPE",
    "FALLBACK_PROFILE_TYPE",
    "InMemoryProfileStore",
    "PREREQ_API_ID",
    "PREREQ_AUTHENTICATION",
    "PREREQ_MULTI_TENANT",
    "ProfileCache",
    "ProfileCatalog",
    "ProfileCatalogError",
    "ProfileDefinition",
    "ProfileRecord",
    "ProfileStore",
    "load_profile_definitions",
    "profile_id_for",
]
