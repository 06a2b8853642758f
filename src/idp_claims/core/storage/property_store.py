"""Property store interface and implementations.

The property store is the only state shared between the capture and
projection workflows. Each call is assumed atomic for a single property:
a patch fully replaces the previous value and readers never observe a
partial write.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import httpx
from loguru import logger

from src.idp_claims.core.exceptions import (
    ManagementApiAuthError,
    PropertyCreationError,
    PropertyStoreError,
)
from src.idp_claims.core.models.property import (
    CreateOutcome,
    PropertyContext,
    PropertyDefinition,
)
from src.idp_claims.core.services.management_api import ManagementApiClient
from src.idp_claims.runtime.context import get_config

_ALREADY_EXISTS = re.compile(r"already[ _-]?exists?|duplicate", re.IGNORECASE)


class PropertyStore(ABC):
    """Abstract interface for the host platform's property store."""

    @abstractmethod
    async def list_properties(
        self, context: PropertyContext = PropertyContext.USER
    ) -> list[PropertyDefinition]:
        """List property definitions.

        Args:
            context: Only return definitions attached to this entity type

        Returns:
            Matching property definitions
        """
        pass

    @abstractmethod
    async def create_property(self, definition: PropertyDefinition) -> CreateOutcome:
        """Create a property definition.

        Args:
            definition: Definition to create

        Returns:
            CREATED, or ALREADY_EXISTS if the key is taken

        Raises:
            PropertyCreationError: For any other failure
        """
        pass

    @abstractmethod
    async def get_user_properties(self, user_id: str) -> dict[str, str]:
        """Read a user's property values.

        Args:
            user_id: User identifier

        Returns:
            Mapping of property key to value; unset properties are omitted
        """
        pass

    @abstractmethod
    async def patch_user_properties(self, user_id: str, values: Mapping[str, str]) -> None:
        """Overwrite the named property values for a user.

        Properties not named in ``values`` are left untouched.

        Args:
            user_id: User identifier
            values: Mapping of property key to new value
        """
        pass

    async def health_check(self) -> bool:
        """Check if the backend is reachable."""
        return True


class InMemoryPropertyStore(PropertyStore):
    """In-memory property store for tests and local development."""

    def __init__(self) -> None:
        self._definitions: dict[str, PropertyDefinition] = {}
        self._values: dict[str, dict[str, str]] = {}

    async def list_properties(
        self, context: PropertyContext = PropertyContext.USER
    ) -> list[PropertyDefinition]:
        return [d for d in self._definitions.values() if d.context == context]

    async def create_property(self, definition: PropertyDefinition) -> CreateOutcome:
        if definition.key in self._definitions:
            return CreateOutcome.ALREADY_EXISTS
        self._definitions[definition.key] = definition
        return CreateOutcome.CREATED

    async def get_user_properties(self, user_id: str) -> dict[str, str]:
        return dict(self._values.get(user_id, {}))

    async def patch_user_properties(self, user_id: str, values: Mapping[str, str]) -> None:
        unknown = [key for key in values if key not in self._definitions]
        if unknown:
            raise PropertyStoreError(
                f"Unknown property keys: {', '.join(sorted(unknown))}", status_code=400
            )
        self._values.setdefault(user_id, {}).update(values)

    def definitions(self) -> list[PropertyDefinition]:
        """All stored definitions, regardless of context."""
        return list(self._definitions.values())


class ManagementApiPropertyStore(PropertyStore):
    """Property store backed by the host platform's management API."""

    def __init__(self, client: ManagementApiClient) -> None:
        self._client = client

    async def list_properties(
        self, context: PropertyContext = PropertyContext.USER
    ) -> list[PropertyDefinition]:
        response = await self._client.request(
            "GET", "properties", params={"context": context.value}
        )
        definitions = []
        for item in _extract_properties(_json_body(response)):
            if not item.get("key"):
                continue
            definitions.append(
                PropertyDefinition(
                    key=item["key"],
                    name=item.get("name") or item["key"],
                    description=item.get("description"),
                    context=context,
                    is_private=_as_bool(item.get("is_private", False)),
                )
            )
        return definitions

    async def create_property(self, definition: PropertyDefinition) -> CreateOutcome:
        try:
            await self._client.request(
                "POST", "properties", json=definition.to_api_payload()
            )
        except ManagementApiAuthError:
            raise
        except PropertyStoreError as e:
            if _is_already_exists(e):
                logger.info(f"Property '{definition.key}' was created concurrently")
                return CreateOutcome.ALREADY_EXISTS
            raise PropertyCreationError(
                f"Failed to create property '{definition.key}': {e}",
                status_code=e.status_code,
                detail=e.detail,
            ) from e
        return CreateOutcome.CREATED

    async def get_user_properties(self, user_id: str) -> dict[str, str]:
        response = await self._client.request("GET", f"users/{user_id}/properties")
        values: dict[str, str] = {}
        for item in _extract_properties(_json_body(response)):
            key = item.get("key")
            value = item.get("value")
            if key and value is not None:
                values[key] = value if isinstance(value, str) else json.dumps(value)
        return values

    async def patch_user_properties(self, user_id: str, values: Mapping[str, str]) -> None:
        await self._client.request(
            "PATCH", f"users/{user_id}/properties", json={"properties": dict(values)}
        )

    async def health_check(self) -> bool:
        try:
            await self._client.get_access_token()
        except PropertyStoreError as e:
            logger.warning(f"Management API health check failed: {e}")
            return False
        return True


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise PropertyStoreError(
            f"Management API returned a non-JSON body: {e}",
            status_code=response.status_code,
            detail=response.text[:500],
        ) from e


def _extract_properties(body: Any) -> list[dict[str, Any]]:
    """Return the ``properties`` list from either response envelope."""
    if not isinstance(body, dict):
        return []
    properties = body.get("properties")
    if properties is None and isinstance(body.get("data"), dict):
        properties = body["data"].get("properties")
    if not isinstance(properties, list):
        return []
    return [item for item in properties if isinstance(item, dict)]


def _is_already_exists(error: PropertyStoreError) -> bool:
    if error.status_code == 409:
        return True
    return error.status_code == 400 and bool(
        error.detail and _ALREADY_EXISTS.search(error.detail)
    )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def get_property_store() -> PropertyStore:
    """Build the property store selected by configuration.

    Falls back to an in-memory store outside production when no management
    API credentials are configured.
    """
    config = get_config()
    if config.management_api.enabled:
        return ManagementApiPropertyStore(ManagementApiClient(config.management_api))

    if config.app.environment == "production":
        raise RuntimeError("Management API credentials are required in production")

    logger.warning("Management API not configured; using in-memory property store")
    return InMemoryPropertyStore()
