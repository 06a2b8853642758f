"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Request

from src.idp_claims.api.http.app_data import ApplicationDependencies
from src.idp_claims.core.storage import PropertyStore


def get_store(request: Request) -> PropertyStore:
    """Get the property store instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.property_store
