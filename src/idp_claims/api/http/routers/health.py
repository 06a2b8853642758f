"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from src.idp_claims.api.http.deps import get_store
from src.idp_claims.core.storage import PropertyStore
from src.idp_claims.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe; does not check dependencies."""
    return {"status": "healthy", "service": "idp-claims"}


@router.get("/ready", response_model=None)
async def readiness(
    store: PropertyStore = Depends(get_store),
) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    Returns 503 when the property store cannot be reached. Token projection
    still degrades gracefully in that state, but claim capture will fail.
    """
    config = get_config()
    store_healthy = await store.health_check()

    body = {
        "status": "ready" if store_healthy else "not_ready",
        "checks": {
            "property_store": {
                "status": "healthy" if store_healthy else "unhealthy",
                "type": type(store).__name__,
                "management_api": config.management_api.enabled,
            }
        },
    }
    if not store_healthy:
        return JSONResponse(status_code=503, content=body)
    return body
