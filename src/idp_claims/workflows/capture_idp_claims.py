"""
Capture IdP claims workflow.

Runs after every completed authentication. When the user signed in through
an OAuth2 social connection, the ID token claims issued by that provider are
filtered and stored as one JSON document in a user property. The companion
``add_idp_claims_to_tokens`` workflow reads that property on every token
issuance.

Each capture replaces the previous snapshot entirely; concurrent captures for
the same user resolve as last writer wins.

Trigger: user:post_authentication
"""

from dataclasses import dataclass
from datetime import datetime

from loguru import logger

from src.idp_claims.core.claim_filter import build_exclusion_set, filter_claims
from src.idp_claims.core.exceptions import MissingUserIdError, PropertyStoreError
from src.idp_claims.core.models.events import PostAuthenticationEvent
from src.idp_claims.core.models.property import CreateOutcome
from src.idp_claims.core.models.snapshot import StoredSnapshot
from src.idp_claims.core.storage.property_definitions import ensure_property_definition
from src.idp_claims.core.storage.property_store import PropertyStore
from src.idp_claims.runtime.context import get_config
from src.idp_claims.workflows.base import FailurePolicy, WorkflowSettings, WorkflowTrigger
from src.idp_claims.workflows.registry import workflow_defn

WORKFLOW_SETTINGS = WorkflowSettings(
    id="captureIdpClaimsJson",
    name="Capture IdP Claims as JSON",
    trigger=WorkflowTrigger.POST_AUTHENTICATION,
    failure_policy=FailurePolicy.STOP,
)


@dataclass(frozen=True)
class CaptureResult:
    captured: bool
    provider: str | None = None
    claim_count: int = 0
    property_created: bool = False
    skip_reason: str | None = None


@workflow_defn(WORKFLOW_SETTINGS)
async def capture_idp_claims(
    event: PostAuthenticationEvent,
    store: PropertyStore,
    *,
    now: datetime | None = None,
) -> CaptureResult:
    """Store the provider's ID token claims for the authenticated user.

    Args:
        event: Post-authentication event from the host platform
        store: Property store holding the snapshot
        now: Capture time, defaults to the current UTC time

    Returns:
        What was captured, or why nothing was

    Raises:
        MissingUserIdError: If a supported login carries no user id
        PropertyStoreError: If the property cannot be ensured or written
    """
    settings = get_config().idp_claims
    log = logger.bind(workflow_id=WORKFLOW_SETTINGS.id, user_id=event.user_id or "-")
    provider = event.resolved_provider

    supported = {protocol.lower() for protocol in settings.supported_protocols}
    if provider is None or not provider.protocol or provider.protocol.lower() not in supported:
        log.debug("Not an OAuth2 authentication, skipping")
        return CaptureResult(captured=False, skip_reason="unsupported_provider")

    id_token_claims = provider.id_token_claims
    if id_token_claims is None:
        log.debug("No ID token claims available")
        return CaptureResult(
            captured=False, provider=provider.provider, skip_reason="no_claims"
        )

    user_id = event.user_id
    if not user_id:
        log.error("User ID is missing from event context")
        raise MissingUserIdError("User ID is required")

    try:
        outcome = await ensure_property_definition(store, settings)
    except PropertyStoreError as e:
        log.error(f"Failed to ensure property '{settings.property_key}': {e}")
        raise

    claims = filter_claims(
        id_token_claims, build_exclusion_set(settings.excluded_claims_extra)
    )
    provider_id = provider.provider or "unknown"
    snapshot = StoredSnapshot.capture(claims, provider_id, now=now)

    try:
        await store.patch_user_properties(
            user_id, {settings.property_key: snapshot.serialize()}
        )
    except PropertyStoreError as e:
        log.error(f"Error updating user properties: {e}")
        raise

    log.info(
        f"Successfully captured {len(snapshot.claims)} IdP claims from {provider_id}"
    )
    return CaptureResult(
        captured=True,
        provider=provider_id,
        claim_count=len(snapshot.claims),
        property_created=outcome is CreateOutcome.CREATED,
    )
