# mazao/policy.py
"""
Ownership evaluator.

Every role/ownership decision for crops and principals goes through here:
  - can_access()   -> bool for a single record
  - authorize()    -> existence + ownership check as a Result
  - scope_filter() -> narrows list queries to what the caller may see
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from mazao.errors import ErrorKind, Result
from mazao.models.user_models import Principal
from mazao.mongo import to_object_id


class Action(str, Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class ResourceKind(str, Enum):
    CROP = "crop"
    PRINCIPAL = "principal"


# field on each stored document that names its owning principal
OWNER_FIELD = {
    ResourceKind.CROP: "farmerId",
    ResourceKind.PRINCIPAL: "_id",
}

NOUN = {
    ResourceKind.CROP: "Crop",
    ResourceKind.PRINCIPAL: "User",
}


def owner_id(resource: Dict[str, Any], kind: ResourceKind) -> Optional[str]:
    value = resource.get(OWNER_FIELD[kind])
    return str(value) if value is not None else None


def is_self_deletion(principal: Principal, resource: Dict[str, Any], kind: ResourceKind, action: Action) -> bool:
    return (
        kind == ResourceKind.PRINCIPAL
        and action == Action.DELETE
        and owner_id(resource, kind) == principal.id
    )


def can_access(principal: Optional[Principal], resource: Dict[str, Any], action: Action, kind: ResourceKind) -> bool:
    if principal is None:
        return False

    if principal.is_admin:
        # no admin may remove their own account
        return not is_self_deletion(principal, resource, kind, action)

    return owner_id(resource, kind) == principal.id


def authorize(
    principal: Principal,
    resource: Optional[Dict[str, Any]],
    action: Action,
    kind: ResourceKind,
) -> Result[Dict[str, Any]]:
    """Existence then ownership; yields the resource on success."""
    if resource is None:
        return Result.fail(ErrorKind.NOT_FOUND, f"{NOUN[kind]} not found")

    if is_self_deletion(principal, resource, kind, action):
        return Result.fail(ErrorKind.INVALID_INPUT, "You cannot delete your own account")

    if not can_access(principal, resource, action, kind):
        return Result.fail(
            ErrorKind.FORBIDDEN,
            f"Not authorized to {action.value} this {NOUN[kind].lower()}",
        )
    return Result.success(resource)


def scope_filter(principal: Principal, query: Dict[str, Any], kind: ResourceKind = ResourceKind.CROP) -> Dict[str, Any]:
    """
    Narrow a list query for non-admins. A farmer's own-id constraint always
    overrides whatever owner filter the caller asked for.
    """
    if principal.is_admin:
        return dict(query)

    scoped = dict(query)
    scoped[OWNER_FIELD[kind]] = to_object_id(principal.id)
    return scoped
