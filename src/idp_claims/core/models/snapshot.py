"""The stored claims snapshot shared by the capture and projection workflows.

A snapshot is persisted as a single flat JSON object: the filtered claims
plus two reserved metadata fields.

    {
      "sub": "1234",
      "email": "user@example.com",
      "_provider": "google",
      "_last_updated": "2025-01-01T12:00:00+00:00"
    }

Keys starting with ``METADATA_PREFIX`` are reserved for metadata and are never
projected into tokens.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Final

from pydantic import BaseModel, Field, JsonValue

from src.idp_claims.core.exceptions import SnapshotDecodeError

METADATA_PREFIX: Final = "_"
PROVIDER_FIELD: Final = f"{METADATA_PREFIX}provider"
LAST_UPDATED_FIELD: Final = f"{METADATA_PREFIX}last_updated"


class StoredSnapshot(BaseModel):
    """Latest identity provider claims captured for one user."""

    claims: dict[str, JsonValue] = Field(
        default_factory=dict, description="Filtered claims keyed by claim name"
    )
    provider: str | None = Field(default=None, description="Identity provider identifier")
    last_updated: str | None = Field(
        default=None, description="ISO-8601 timestamp of the capture"
    )

    @classmethod
    def capture(
        cls,
        claims: Mapping[str, Any],
        provider: str,
        now: datetime | None = None,
    ) -> StoredSnapshot:
        """Build a fresh snapshot from filtered claims.

        Claim names colliding with the metadata prefix are dropped.
        """
        timestamp = now or datetime.now(UTC)
        return cls(
            claims={
                name: value
                for name, value in claims.items()
                if not name.startswith(METADATA_PREFIX)
            },
            provider=provider,
            last_updated=timestamp.isoformat(),
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = dict(self.claims)
        document[PROVIDER_FIELD] = self.provider
        document[LAST_UPDATED_FIELD] = self.last_updated
        return document

    def serialize(self) -> str:
        return json.dumps(self.to_document(), indent=2)

    @classmethod
    def parse(cls, raw: str) -> StoredSnapshot:
        """Parse a stored property value.

        Raises:
            SnapshotDecodeError: If the value is not a JSON object
        """
        try:
            document = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise SnapshotDecodeError(f"Stored snapshot is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise SnapshotDecodeError(
                f"Stored snapshot must be a JSON object, got {type(document).__name__}"
            )

        provider = document.get(PROVIDER_FIELD)
        last_updated = document.get(LAST_UPDATED_FIELD)
        return cls(
            claims={
                name: value
                for name, value in document.items()
                if not name.startswith(METADATA_PREFIX)
            },
            provider=provider if isinstance(provider, str) else None,
            last_updated=last_updated if isinstance(last_updated, str) else None,
        )

    def projected_claims(self, prefix: str) -> dict[str, Any]:
        """Token claims for every stored claim, renamed with ``prefix``."""
        return {f"{prefix}{name}": value for name, value in self.claims.items()}
