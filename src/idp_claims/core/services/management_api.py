"""Machine-to-machine client for the host platform's management API."""

import base64
import time
from dataclasses import dataclass
from typing import Any

import httpx
from cachetools import TLRUCache
from loguru import logger
from pydantic import BaseModel, ValidationError

from src.idp_claims.core.exceptions import ManagementApiAuthError, PropertyStoreError
from src.idp_claims.runtime.config.config_data import ManagementApiConfig
from src.idp_claims.runtime.context import get_config

# Renew tokens slightly before the provider considers them expired
TOKEN_EXPIRY_MARGIN_SECONDS = 30


class TokenResponse(BaseModel):
    """OAuth2 client credentials token response."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3600
    scope: str | None = None


@dataclass(frozen=True)
class _CachedToken:
    access_token: str
    lifetime: float


def _token_ttu(_key: str, value: _CachedToken, now: float) -> float:
    return now + value.lifetime


class ManagementApiClient:
    """Authenticated access to ``<domain>/api/v1``.

    Tokens are fetched with the client credentials grant and cached until
    shortly before they expire.
    """

    def __init__(self, config: ManagementApiConfig | None = None) -> None:
        self._config = config or get_config().management_api
        self._token_cache: TLRUCache[str, _CachedToken] = TLRUCache(
            maxsize=4, ttu=_token_ttu, timer=time.monotonic
        )

    @property
    def config(self) -> ManagementApiConfig:
        return self._config

    def clear_token_cache(self) -> None:
        self._token_cache.clear()

    async def get_access_token(self) -> str:
        """Return a cached or freshly issued M2M access token.

        Raises:
            ManagementApiAuthError: If credentials are missing or the token
                endpoint rejects them
        """
        cfg = self._config
        if not cfg.enabled:
            raise ManagementApiAuthError("Management API credentials are not configured")

        cached = self._token_cache.get(cfg.client_id)
        if cached is not None:
            return cached.access_token

        token_data = {
            "grant_type": "client_credentials",
            "audience": cfg.resolved_audience,
        }
        credentials = f"{cfg.client_id}:{cfg.client_secret}"
        encoded_credentials = base64.b64encode(credentials.encode()).decode()
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": f"Basic {encoded_credentials}",
        }

        try:
            async with httpx.AsyncClient(timeout=cfg.timeout_seconds) as client:
                response = await client.post(
                    cfg.resolved_token_endpoint, data=token_data, headers=headers
                )
                response.raise_for_status()
                token = TokenResponse(**response.json())
        except httpx.HTTPStatusError as e:
            raise ManagementApiAuthError(
                f"Token request rejected with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            raise ManagementApiAuthError(f"Token request failed: {e}") from e

        lifetime = min(
            token.expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, cfg.token_cache_ttl_seconds
        )
        if lifetime > 0:
            self._token_cache[cfg.client_id] = _CachedToken(token.access_token, lifetime)
        logger.debug(f"Obtained management API token valid for {token.expires_in}s")
        return token.access_token

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send an authenticated request to the management API.

        Args:
            method: HTTP method
            path: Path relative to ``/api/v1``, e.g. ``users/abc/properties``
            params: Query parameters
            json: JSON request body

        Returns:
            The successful response

        Raises:
            PropertyStoreError: On transport errors and non-2xx responses
        """
        token = await self.get_access_token()
        url = f"{self._config.base_url}/api/v1/{path.lstrip('/')}"
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}

        try:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                response = await client.request(
                    method, url, params=params, json=json, headers=headers
                )
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            raise PropertyStoreError(
                f"{method} {path} failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
                detail=e.response.text[:500],
            ) from e
        except httpx.HTTPError as e:
            raise PropertyStoreError(f"{method} {path} failed: {e}") from e
