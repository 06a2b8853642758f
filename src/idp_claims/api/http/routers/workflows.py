"""Webhook endpoints the host platform calls when a workflow trigger fires."""

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from src.idp_claims.api.http.deps import get_store
from src.idp_claims.core.exceptions import MissingUserIdError, PropertyStoreError
from src.idp_claims.core.models.events import (
    PostAuthenticationEvent,
    TokenClaimBags,
    TokensGenerationEvent,
)
from src.idp_claims.core.storage import PropertyStore
from src.idp_claims.workflows import add_idp_claims_to_tokens  # noqa: F401
from src.idp_claims.workflows import capture_idp_claims as capture
from src.idp_claims.workflows.base import FailurePolicy, WorkflowTrigger
from src.idp_claims.workflows.registry import (
    all_workflows,
    effective_failure_policy,
    get_workflows,
)

router = APIRouter(prefix="/workflows", tags=["workflows"])


class WorkflowInfo(BaseModel):
    id: str
    name: str
    trigger: str
    failure_policy: str


class CaptureResponse(BaseModel):
    status: Literal["captured", "skipped", "failed"]
    provider: str | None = None
    claim_count: int = 0
    property_created: bool = False
    detail: str | None = None


class TokensGenerationRequest(TokensGenerationEvent):
    access_token_claims: dict[str, Any] = Field(
        default_factory=dict,
        alias="accessTokenClaims",
        description="Custom access token claims set so far",
    )
    id_token_claims: dict[str, Any] = Field(
        default_factory=dict,
        alias="idTokenClaims",
        description="Custom ID token claims set so far",
    )


class TokensGenerationResponse(BaseModel):
    claims_added: int
    access_token_claims: dict[str, Any]
    id_token_claims: dict[str, Any]


@router.get("")
async def list_workflows() -> list[WorkflowInfo]:
    return [
        WorkflowInfo(
            id=settings.id,
            name=settings.name,
            trigger=settings.trigger.value,
            failure_policy=effective_failure_policy(settings).value,
        )
        for settings in all_workflows()
    ]


@router.post("/post-authentication")
async def post_authentication(
    event: PostAuthenticationEvent,
    store: PropertyStore = Depends(get_store),
) -> CaptureResponse:
    """Capture the provider's ID token claims for the authenticated user.

    A store failure is reported as 502 when the workflow's failure policy is
    ``stop`` so the host fails the login; with ``continue`` the login proceeds
    without a fresh snapshot.
    """
    try:
        result = await capture.capture_idp_claims(event, store)
    except MissingUserIdError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PropertyStoreError as e:
        if effective_failure_policy(capture.WORKFLOW_SETTINGS) is FailurePolicy.STOP:
            raise HTTPException(
                status_code=502, detail=f"Claim capture failed: {e}"
            ) from e
        logger.warning(f"Claim capture failed, continuing login: {e}")
        return CaptureResponse(status="failed", detail=str(e))

    if not result.captured:
        return CaptureResponse(
            status="skipped", provider=result.provider, detail=result.skip_reason
        )
    return CaptureResponse(
        status="captured",
        provider=result.provider,
        claim_count=result.claim_count,
        property_created=result.property_created,
    )


@router.post("/tokens-generation")
async def tokens_generation(
    request: TokensGenerationRequest,
    store: PropertyStore = Depends(get_store),
) -> TokensGenerationResponse:
    """Run every token generation workflow over the request's claim bags."""
    bags = TokenClaimBags(
        access_token=dict(request.access_token_claims),
        id_token=dict(request.id_token_claims),
    )
    claims_added = 0
    for handler in get_workflows(WorkflowTrigger.TOKENS_GENERATION):
        claims_added += await handler(request, store, bags)
    return TokensGenerationResponse(
        claims_added=claims_added,
        access_token_claims=bags.access_token,
        id_token_claims=bags.id_token,
    )
