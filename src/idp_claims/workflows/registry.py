# workflows/registry.py
"""
Workflow registry.

Handlers declare the trigger they respond to with ``workflow_defn`` and are
looked up by trigger at dispatch time.

Usage:
    @workflow_defn(
        WorkflowSettings(
            id="captureIdpClaimsJson",
            name="Capture IdP Claims as JSON",
            trigger=WorkflowTrigger.POST_AUTHENTICATION,
        )
    )
    async def capture_idp_claims(event, store):
        ...
"""

import importlib
import pkgutil
from collections.abc import Callable
from typing import Any, TypeVar

from src.idp_claims.runtime.context import get_config
from src.idp_claims.workflows.base import FailurePolicy, WorkflowSettings, WorkflowTrigger

F = TypeVar("F", bound=Callable[..., Any])

# central registry: trigger -> handlers in registration order
_WORKFLOWS_BY_TRIGGER: dict[WorkflowTrigger, list[Callable[..., Any]]] = {}


def workflow_defn(settings: WorkflowSettings) -> Callable[[F], F]:
    """Register a handler for ``settings.trigger``."""

    def decorator(fn: F) -> F:
        fn.__workflow_settings__ = settings  # type: ignore[attr-defined]
        handlers = _WORKFLOWS_BY_TRIGGER.setdefault(settings.trigger, [])
        if not any(get_settings(h).id == settings.id for h in handlers):
            handlers.append(fn)
        return fn

    return decorator


def get_settings(handler: Callable[..., Any]) -> WorkflowSettings:
    settings = getattr(handler, "__workflow_settings__", None)
    if settings is None:
        raise ValueError(f"{handler!r} is not a registered workflow")
    return settings


def get_workflows(trigger: WorkflowTrigger) -> list[Callable[..., Any]]:
    return list(_WORKFLOWS_BY_TRIGGER.get(trigger, []))


def all_workflows() -> list[WorkflowSettings]:
    return [
        get_settings(handler)
        for handlers in _WORKFLOWS_BY_TRIGGER.values()
        for handler in handlers
    ]


def effective_failure_policy(settings: WorkflowSettings) -> FailurePolicy:
    """The workflow's failure policy after applying configured overrides."""
    override = get_config().workflows.failure_policies.get(settings.id)
    return FailurePolicy(override) if override else settings.failure_policy


def discover(module_path: str = "src.idp_claims.workflows") -> list[WorkflowSettings]:
    """
    Import every module in ``module_path`` so their workflows register.

    Returns:
        Settings of all registered workflows
    """
    pkg = importlib.import_module(module_path)
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{module_path}."):
        importlib.import_module(m.name)
    return all_workflows()
