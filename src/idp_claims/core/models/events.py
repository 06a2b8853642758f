"""Event payloads delivered by the host platform's workflow triggers."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _EventModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class IdToken(_EventModel):
    claims: dict[str, Any] | None = Field(
        default=None, description="Verified ID token claims from the provider"
    )


class ProviderData(_EventModel):
    id_token: IdToken | None = Field(default=None, alias="idToken")


class ProviderDescriptor(_EventModel):
    """The connection a user authenticated through."""

    provider: str | None = Field(default=None, description="Provider identifier, e.g. google")
    protocol: str | None = Field(default=None, description="Connection protocol, e.g. oauth2")
    data: ProviderData | None = None

    @property
    def id_token_claims(self) -> dict[str, Any] | None:
        if self.data is None or self.data.id_token is None:
            return None
        return self.data.id_token.claims


class EventUser(_EventModel):
    id: str | None = None


class AuthContext(_EventModel):
    provider: ProviderDescriptor | None = None


class EventContext(_EventModel):
    user: EventUser | None = None
    auth: AuthContext | None = None


class PostAuthenticationEvent(_EventModel):
    """Fired once per completed authentication.

    The provider descriptor may arrive at the top level or nested under
    ``context.auth``; both shapes are accepted.
    """

    provider: ProviderDescriptor | None = None
    context: EventContext | None = None

    @property
    def resolved_provider(self) -> ProviderDescriptor | None:
        if self.provider is not None:
            return self.provider
        if self.context is not None and self.context.auth is not None:
            return self.context.auth.provider
        return None

    @property
    def user_id(self) -> str | None:
        if self.context is None or self.context.user is None:
            return None
        return self.context.user.id or None


class TokensGenerationEvent(_EventModel):
    """Fired on every token mint, including silent refresh."""

    user: EventUser | None = None
    context: EventContext | None = None

    @property
    def user_id(self) -> str | None:
        if self.user is not None and self.user.id:
            return self.user.id
        if self.context is not None and self.context.user is not None:
            return self.context.user.id or None
        return None


@dataclass
class TokenClaimBags:
    """Custom claims for the access and ID tokens being minted."""

    access_token: dict[str, Any] = field(default_factory=dict)
    id_token: dict[str, Any] = field(default_factory=dict)
