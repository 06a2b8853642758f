"""Tests for creating the snapshot property definition."""

from unittest.mock import AsyncMock

import pytest

from src.idp_claims.core.exceptions import PropertyCreationError, PropertyStoreError
from src.idp_claims.core.models.property import (
    CreateOutcome,
    PropertyContext,
    PropertyDefinition,
    PropertyType,
)
from src.idp_claims.core.storage.property_definitions import (
    ensure_property_definition,
    snapshot_property_definition,
)


def test_snapshot_property_definition(idp_claims_config, category_id):
    definition = snapshot_property_definition(idp_claims_config)

    assert definition.key == "idp_claims"
    assert definition.type is PropertyType.MULTI_LINE_TEXT
    assert definition.context is PropertyContext.USER
    assert definition.is_private is False
    assert definition.category_id == category_id


class TestEnsurePropertyDefinition:
    @pytest.mark.asyncio
    async def test_creates_missing_property(self, memory_store, idp_claims_config):
        outcome = await ensure_property_definition(memory_store, idp_claims_config)

        assert outcome is CreateOutcome.CREATED
        assert [d.key for d in memory_store.definitions()] == ["idp_claims"]

    @pytest.mark.asyncio
    async def test_existing_property_is_left_alone(self, memory_store, idp_claims_config):
        await ensure_property_definition(memory_store, idp_claims_config)
        memory_store.create_property = AsyncMock()

        outcome = await ensure_property_definition(memory_store, idp_claims_config)

        assert outcome is CreateOutcome.ALREADY_EXISTS
        memory_store.create_property.assert_not_called()

    @pytest.mark.asyncio
    async def test_lost_creation_race(self, memory_store, idp_claims_config):
        # another login created the property between list and create
        memory_store.list_properties = AsyncMock(return_value=[])
        await memory_store.create_property(
            PropertyDefinition(key="idp_claims", name="IdP Claims")
        )

        outcome = await ensure_property_definition(memory_store, idp_claims_config)

        assert outcome is CreateOutcome.ALREADY_EXISTS
        assert len(memory_store.definitions()) == 1

    @pytest.mark.asyncio
    async def test_creation_failure_propagates(self, memory_store, idp_claims_config):
        memory_store.create_property = AsyncMock(
            side_effect=PropertyCreationError("invalid category", status_code=400)
        )

        with pytest.raises(PropertyCreationError):
            await ensure_property_definition(memory_store, idp_claims_config)

    @pytest.mark.asyncio
    async def test_list_failure_propagates(self, memory_store, idp_claims_config):
        memory_store.list_properties = AsyncMock(
            side_effect=PropertyStoreError("unavailable", status_code=503)
        )

        with pytest.raises(PropertyStoreError):
            await ensure_property_definition(memory_store, idp_claims_config)
