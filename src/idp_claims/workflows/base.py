# workflows/base.py
from dataclasses import dataclass
from enum import StrEnum


class WorkflowTrigger(StrEnum):
    """Host platform events a workflow can be bound to."""

    POST_AUTHENTICATION = "user:post_authentication"
    TOKENS_GENERATION = "user:tokens_generation"


class FailurePolicy(StrEnum):
    """What the triggering platform should do when a workflow raises.

    STOP fails the login or token request; CONTINUE lets it proceed.
    """

    STOP = "stop"
    CONTINUE = "continue"


@dataclass(frozen=True)
class WorkflowSettings:
    id: str
    name: str
    trigger: WorkflowTrigger
    failure_policy: FailurePolicy = FailurePolicy.STOP
