"""Property store backends."""

from .property_definitions import (
    ensure_property_definition,
    snapshot_property_definition,
)
from .property_store import (
    InMemoryPropertyStore,
    ManagementApiPropertyStore,
    PropertyStore,
    get_property_store,
)

__all__ = [
    # Stores
    "InMemoryPropertyStore",
    "ManagementApiPropertyStore",
    "PropertyStore",
    "get_property_store",
    # Property definitions
    "ensure_property_definition",
    "snapshot_property_definition",
]
