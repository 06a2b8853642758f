"""
Add IdP claims to tokens workflow.

Runs on every token generation, including silent refreshes, and copies the
snapshot stored by ``capture_idp_claims`` into the access and ID tokens. Each
stored claim is added under the configured prefix, so ``email`` becomes
``idp_email``. Metadata fields (``_provider``, ``_last_updated``) are never
added.

Token issuance must never fail because of this workflow: a missing user id,
an unreachable property store, a missing property or a corrupt value all
result in zero claims being added.

Trigger: user:tokens_generation
"""

from loguru import logger

from src.idp_claims.core.exceptions import PropertyStoreError, SnapshotDecodeError
from src.idp_claims.core.models.events import TokenClaimBags, TokensGenerationEvent
from src.idp_claims.core.models.snapshot import StoredSnapshot
from src.idp_claims.core.storage.property_store import PropertyStore
from src.idp_claims.runtime.context import get_config
from src.idp_claims.workflows.base import FailurePolicy, WorkflowSettings, WorkflowTrigger
from src.idp_claims.workflows.registry import workflow_defn

WORKFLOW_SETTINGS = WorkflowSettings(
    id="addIdpClaimsToTokens",
    name="Add IdP Claims to Tokens",
    trigger=WorkflowTrigger.TOKENS_GENERATION,
    failure_policy=FailurePolicy.STOP,
)


@workflow_defn(WORKFLOW_SETTINGS)
async def add_idp_claims_to_tokens(
    event: TokensGenerationEvent,
    store: PropertyStore,
    bags: TokenClaimBags,
) -> int:
    """Project the user's stored IdP claims into both token claim bags.

    Returns:
        Number of claims added to each token
    """
    settings = get_config().idp_claims
    log = logger.bind(workflow_id=WORKFLOW_SETTINGS.id, user_id=event.user_id or "-")

    user_id = event.user_id
    if not user_id:
        log.error("User ID is missing from event")
        return 0

    try:
        user_properties = await store.get_user_properties(user_id)
    except PropertyStoreError as e:
        log.error(f"Failed to fetch user properties: {e}")
        return 0

    raw_snapshot = user_properties.get(settings.property_key)
    if not raw_snapshot:
        # never authenticated via a supported provider, or capture not deployed
        return 0

    try:
        snapshot = StoredSnapshot.parse(raw_snapshot)
    except SnapshotDecodeError as e:
        log.error(f"Failed to parse {settings.property_key} property: {e}")
        return 0

    projected = snapshot.projected_claims(settings.token_claim_prefix)
    bags.access_token.update(projected)
    bags.id_token.update(projected)

    if projected:
        log.info(
            f"Added {len(projected)} IdP claims to tokens "
            f"(provider: {snapshot.provider or 'unknown'})"
        )
    return len(projected)
