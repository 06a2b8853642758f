"""Lazy, idempotent creation of the property that holds claim snapshots."""

from loguru import logger

from src.idp_claims.core.models.property import (
    CreateOutcome,
    PropertyContext,
    PropertyDefinition,
    PropertyType,
)
from src.idp_claims.core.storage.property_store import PropertyStore
from src.idp_claims.runtime.config.config_data import IdpClaimsConfig


def snapshot_property_definition(settings: IdpClaimsConfig) -> PropertyDefinition:
    """Definition of the user property the capture workflow writes to."""
    return PropertyDefinition(
        key=settings.property_key,
        name=settings.property_name,
        description=settings.property_description,
        type=PropertyType.MULTI_LINE_TEXT,
        context=PropertyContext.USER,
        # public so the value can be included in tokens if needed
        is_private=False,
        category_id=settings.property_category_id,
    )


async def ensure_property_definition(
    store: PropertyStore, settings: IdpClaimsConfig
) -> CreateOutcome:
    """Create the snapshot property unless it already exists.

    Safe to call concurrently: losing a creation race is reported as
    ``ALREADY_EXISTS``.

    Raises:
        PropertyStoreError: If listing fails or creation fails for any other reason
    """
    existing = await store.list_properties(PropertyContext.USER)
    if any(definition.key == settings.property_key for definition in existing):
        return CreateOutcome.ALREADY_EXISTS

    outcome = await store.create_property(snapshot_property_definition(settings))
    if outcome is CreateOutcome.CREATED:
        logger.info(f"Created property: {settings.property_key}")
    return outcome
