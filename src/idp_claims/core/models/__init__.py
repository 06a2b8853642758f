"""Domain models for events, property definitions and stored snapshots."""

from .events import (
    PostAuthenticationEvent,
    ProviderDescriptor,
    TokenClaimBags,
    TokensGenerationEvent,
)
from .property import CreateOutcome, PropertyContext, PropertyDefinition, PropertyType
from .snapshot import METADATA_PREFIX, StoredSnapshot

__all__ = [
    # Events
    "PostAuthenticationEvent",
    "ProviderDescriptor",
    "TokenClaimBags",
    "TokensGenerationEvent",
    # Property store
    "CreateOutcome",
    "PropertyContext",
    "PropertyDefinition",
    "PropertyType",
    # Snapshot
    "METADATA_PREFIX",
    "StoredSnapshot",
]
