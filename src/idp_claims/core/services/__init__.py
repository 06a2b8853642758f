"""Core services exports."""

from .management_api import ManagementApiClient, TokenResponse

__all__ = [
    "ManagementApiClient",
    "TokenResponse",
]
