"""Tests for the management API client."""

import base64

import httpx
import pytest

from src.idp_claims.core.exceptions import ManagementApiAuthError, PropertyStoreError
from src.idp_claims.core.services.management_api import ManagementApiClient
from src.idp_claims.runtime.config.config_data import ManagementApiConfig


@pytest.fixture
def client(management_api_config) -> ManagementApiClient:
    return ManagementApiClient(management_api_config)


class TestManagementApiConfig:
    def test_defaults_derived_from_domain(self):
        config = ManagementApiConfig(
            domain="https://acme.kinde.test/", client_id="id", client_secret="secret"
        )

        assert config.enabled is True
        assert config.base_url == "https://acme.kinde.test"
        assert config.resolved_audience == "https://acme.kinde.test/api"
        assert config.resolved_token_endpoint == "https://acme.kinde.test/oauth2/token"

    def test_explicit_endpoints(self):
        config = ManagementApiConfig(
            domain="https://acme.kinde.test",
            client_id="id",
            client_secret="secret",
            audience="https://api.example.com",
            token_endpoint="https://auth.example.com/token",
        )

        assert config.resolved_audience == "https://api.example.com"
        assert config.resolved_token_endpoint == "https://auth.example.com/token"

    def test_disabled_without_secret(self):
        assert ManagementApiConfig(domain="https://acme.kinde.test", client_id="id").enabled is False


class TestGetAccessToken:
    @pytest.mark.asyncio
    async def test_client_credentials_request(self, client, mock_httpx_client, token_response):
        mock_httpx_client.post.return_value = token_response

        token = await client.get_access_token()

        assert token == "m2m-access-token"
        mock_httpx_client.post.assert_awaited_once()
        args, kwargs = mock_httpx_client.post.call_args
        assert args[0] == "https://acme.kinde.test/oauth2/token"
        assert kwargs["data"] == {
            "grant_type": "client_credentials",
            "audience": "https://acme.kinde.test/api",
        }
        expected = base64.b64encode(b"m2m-client-id:m2m-client-secret").decode()
        assert kwargs["headers"]["Authorization"] == f"Basic {expected}"

    @pytest.mark.asyncio
    async def test_token_is_cached(self, client, mock_httpx_client, token_response):
        mock_httpx_client.post.return_value = token_response

        await client.get_access_token()
        await client.get_access_token()

        assert mock_httpx_client.post.await_count == 1

    @pytest.mark.asyncio
    async def test_clear_token_cache(self, client, mock_httpx_client, token_response):
        mock_httpx_client.post.return_value = token_response

        await client.get_access_token()
        client.clear_token_cache()
        await client.get_access_token()

        assert mock_httpx_client.post.await_count == 2

    @pytest.mark.asyncio
    async def test_short_lived_token_is_not_cached(
        self, client, mock_httpx_client, http_response_factory
    ):
        mock_httpx_client.post.return_value = http_response_factory(
            {"access_token": "short", "expires_in": 10}, method="POST"
        )

        await client.get_access_token()
        await client.get_access_token()

        assert mock_httpx_client.post.await_count == 2

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, client, mock_httpx_client, http_response_factory):
        mock_httpx_client.post.return_value = http_response_factory(
            {"error": "invalid_client"}, status_code=401, method="POST"
        )

        with pytest.raises(ManagementApiAuthError) as exc_info:
            await client.get_access_token()

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_transport_error(self, client, mock_httpx_client):
        mock_httpx_client.post.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(ManagementApiAuthError):
            await client.get_access_token()

    @pytest.mark.asyncio
    async def test_malformed_token_response(
        self, client, mock_httpx_client, http_response_factory
    ):
        mock_httpx_client.post.return_value = http_response_factory(
            {"token_type": "bearer"}, method="POST"
        )

        with pytest.raises(ManagementApiAuthError):
            await client.get_access_token()

    @pytest.mark.asyncio
    async def test_not_configured(self, mock_httpx_client):
        client = ManagementApiClient(ManagementApiConfig())

        with pytest.raises(ManagementApiAuthError):
            await client.get_access_token()

        mock_httpx_client.post.assert_not_called()


class TestRequest:
    @pytest.mark.asyncio
    async def test_authenticated_request(
        self, client, mock_httpx_client, token_response, http_response_factory
    ):
        mock_httpx_client.post.return_value = token_response
        mock_httpx_client.request.return_value = http_response_factory({"code": "OK"})

        response = await client.request(
            "PATCH", "users/kp_1/properties", json={"properties": {"idp_claims": "{}"}}
        )

        assert response.json() == {"code": "OK"}
        args, kwargs = mock_httpx_client.request.call_args
        assert args == ("PATCH", "https://acme.kinde.test/api/v1/users/kp_1/properties")
        assert kwargs["json"] == {"properties": {"idp_claims": "{}"}}
        assert kwargs["headers"]["Authorization"] == "Bearer m2m-access-token"

    @pytest.mark.asyncio
    async def test_error_status_is_mapped(
        self, client, mock_httpx_client, token_response, http_response_factory
    ):
        mock_httpx_client.post.return_value = token_response
        mock_httpx_client.request.return_value = http_response_factory(
            {"errors": [{"code": "USER_NOT_FOUND"}]}, status_code=404
        )

        with pytest.raises(PropertyStoreError) as exc_info:
            await client.request("GET", "users/kp_1/properties")

        assert exc_info.value.status_code == 404
        assert "USER_NOT_FOUND" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_transport_error_is_mapped(self, client, mock_httpx_client, token_response):
        mock_httpx_client.post.return_value = token_response
        mock_httpx_client.request.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(PropertyStoreError) as exc_info:
            await client.request("GET", "properties")

        assert exc_info.value.status_code is None
