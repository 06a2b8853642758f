"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class ManagementApiConfig(BaseModel):
    """Machine-to-machine access to the host platform's management API."""

    domain: str | None = Field(
        default=None,
        description="Base URL of the host platform, e.g. https://acme.kinde.com",
    )
    client_id: str | None = Field(default=None, description="M2M application client ID")
    client_secret: str | None = Field(
        default=None, description="M2M application client secret"
    )
    audience: str | None = Field(
        default=None, description="Token audience (defaults to <domain>/api)"
    )
    token_endpoint: str | None = Field(
        default=None,
        description="OAuth2 token endpoint (defaults to <domain>/oauth2/token)",
    )
    timeout_seconds: float = Field(default=10.0, description="HTTP timeout per call")
    token_cache_ttl_seconds: int = Field(
        default=3600, description="Upper bound for caching the M2M access token"
    )

    @property
    def enabled(self) -> bool:
        """True when enough is configured to call the management API."""
        return bool(self.domain and self.client_id and self.client_secret)

    @property
    def base_url(self) -> str:
        return (self.domain or "").rstrip("/")

    @property
    def resolved_audience(self) -> str:
        return self.audience or f"{self.base_url}/api"

    @property
    def resolved_token_endpoint(self) -> str:
        return self.token_endpoint or f"{self.base_url}/oauth2/token"


class IdpClaimsConfig(BaseModel):
    """Storage and projection settings for captured identity provider claims."""

    property_key: str = Field(
        default="idp_claims", description="Key of the user property holding the snapshot"
    )
    property_name: str = Field(default="IdP Claims", description="Property display name")
    property_description: str = Field(
        default="All claims from the identity provider stored as JSON",
        description="Property description",
    )
    property_category_id: str | None = Field(
        default=None, description="Property category identifier (deployment specific)"
    )
    token_claim_prefix: str = Field(
        default="idp_", description="Prefix added to every projected token claim"
    )
    supported_protocols: list[str] = Field(
        default_factory=lambda: ["oauth2"],
        description="Provider protocols whose ID token claims are captured",
    )
    excluded_claims_extra: list[str] = Field(
        default_factory=list,
        description="Claim names to exclude in addition to the built-in set",
    )


class WorkflowPolicyConfig(BaseModel):
    """Failure policy overrides reported to the triggering platform."""

    failure_policies: dict[str, Literal["stop", "continue"]] = Field(
        default_factory=dict,
        description="Failure policy by workflow id; unset workflows keep their default",
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    management_api: ManagementApiConfig = Field(
        default_factory=ManagementApiConfig,
        description="Management API configuration",
    )
    idp_claims: IdpClaimsConfig = Field(
        default_factory=IdpClaimsConfig, description="IdP claims configuration"
    )
    workflows: WorkflowPolicyConfig = Field(
        default_factory=WorkflowPolicyConfig, description="Workflow policies"
    )
