"""ActionRequest - the per-call input to policy enforcement.

Callers build one ActionRequest before any create/update/submit/approve/
publish/delete of an entity and hand it to the enforcer.
"""

from __future__ import annotations

__all__ = [
    "ActionRequest",
    "build_action_request",
]

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from grc_policy.context.tree import to_tree

if TYPE_CHECKING:
    from grc_policy.config import EngineConfig


class ActionRequest(BaseModel):
    """Immutable description of an action awaiting a policy decision.

    Attributes:
        action: Operation being performed (create, update, approve, ...).
        environment: Deployment environment (dev, staging, prod).
        resource_type: Entity type (Evidence, Risk, PolicyDocument, ...).
        resource: Candidate entity as a TreeValue (converted on construction).
        tenant_id: Tenant the action runs under, if any.
        principal_id: Acting user, if known.
        principal_roles: Roles of the acting user (ordered, unique).
    """

    action: str
    environment: str
    resource_type: str
    resource: Any = None
    tenant_id: str | None = None
    principal_id: str | None = None
    principal_roles: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @field_validator("resource", mode="before")
    @classmethod
    def convert_resource(cls, v: Any) -> Any:
        """Convert the payload into a structural tree once, at the boundary."""
        return to_tree(v)

    @field_validator("tenant_id", "principal_id", mode="before")
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:
        """Accept UUIDs for identifiers."""
        if isinstance(v, UUID):
            return str(v)
        return v

    @field_validator("principal_roles", mode="before")
    @classmethod
    def dedupe_roles(cls, v: Any) -> Any:
        """Keep the first occurrence of each role, preserving order."""
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return tuple(dict.fromkeys(v))


def build_action_request(
    action: str,
    resource_type: str,
    resource: Any,
    *,
    environment: str | None = None,
    tenant_id: str | UUID | None = None,
    principal_id: str | UUID | None = None,
    principal_roles: Iterable[str] = (),
    config: "EngineConfig | None" = None,
) -> ActionRequest:
    """Build an ActionRequest from values the calling service already has.

    When no environment is given it is resolved from configuration, then
    the GRC_ENVIRONMENT variable, then "dev".

    Args:
        action: Operation being performed.
        resource_type: Entity type name.
        resource: Entity or DTO (any structurally serializable value).
        environment: Explicit environment; resolved when None.
        tenant_id: Current tenant.
        principal_id: Current user.
        principal_roles: Current user's roles.
        config: Engine configuration used for environment resolution.

    Returns:
        ActionRequest ready for enforcement.
    """
    from grc_policy.config import resolve_environment

    return ActionRequest(
        action=action,
        environment=environment or resolve_environment(config),
        resource_type=resource_type,
        resource=resource,
        tenant_id=tenant_id,
        principal_id=principal_id,
        principal_roles=tuple(principal_roles),
    )
