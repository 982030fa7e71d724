from __future__ import annotations

import asyncio
from enum import Enum
from typing import Final, Iterable, Literal

from tenant_access.domain.errors import RecordMappingError, StoreUnavailableError
from tenant_access.domain.records import Grant, Position, ResolvedPermission
from tenant_access.gateway import RecordStoreGateway
from tenant_access.observability import record_store_failure


class PermissionAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


OverrideMode = Literal["covered", "exclusive", "disabled"]

ACTION_FLAGS: Final[dict[PermissionAction, str]] = {
    PermissionAction.CREATE: "can_create",
    PermissionAction.READ: "can_read",
    PermissionAction.UPDATE: "can_update",
    PermissionAction.DELETE: "can_delete",
}


def parse_action(action: PermissionAction | str | None) -> PermissionAction | None:
    if isinstance(action, PermissionAction):
        return action
    try:
        return PermissionAction((action or "").strip().lower())
    except ValueError:
        return None


def permission_allows(permission: ResolvedPermission, action: PermissionAction | str) -> bool:
    parsed = parse_action(action)
    if parsed is None:
        return False
    return getattr(permission, ACTION_FLAGS[parsed])


def _collapse(grants: Iterable[Grant]) -> dict[tuple[str, str], ResolvedPermission]:
    # Repeated keys within one source are OR-combined so row order never matters.
    table: dict[tuple[str, str], ResolvedPermission] = {}
    for grant in grants:
        current = table.get(grant.key)
        if current is None:
            table[grant.key] = ResolvedPermission(
                module_code=grant.module_code,
                resource_type=grant.resource_type,
                can_create=grant.can_create,
                can_read=grant.can_read,
                can_update=grant.can_update,
                can_delete=grant.can_delete,
            )
            continue
        table[grant.key] = ResolvedPermission(
            module_code=grant.module_code,
            resource_type=grant.resource_type,
            can_create=current.can_create or grant.can_create,
            can_read=current.can_read or grant.can_read,
            can_update=current.can_update or grant.can_update,
            can_delete=current.can_delete or grant.can_delete,
        )
    return table


def aggregate_permissions(
    role_grants: Iterable[Grant],
    override_grants: Iterable[Grant] = (),
    *,
    mode: OverrideMode = "covered",
) -> tuple[ResolvedPermission, ...]:
    """
    Flatten role grants and position override grants into one permission table.

    There are no deny rows; a key missing from the result denies every action.
    When the position has override rows they replace the role-derived rows:
    only for the keys they cover in "covered" mode, wholesale in "exclusive"
    mode. "disabled" ignores overrides. Output is sorted by (module, resource).
    """
    resolved = _collapse(role_grants)
    overrides = _collapse(override_grants) if mode != "disabled" else {}

    if overrides:
        if mode == "exclusive":
            resolved = overrides
        else:
            resolved.update(overrides)

    return tuple(resolved[key] for key in sorted(resolved))


async def resolve_permissions(
    gateway: RecordStoreGateway,
    position: Position | None,
    *,
    mode: OverrideMode = "covered",
) -> tuple[ResolvedPermission, ...]:
    """Fetch the grants behind a position and aggregate them. Any failure yields no permissions."""
    if position is None:
        return ()

    try:
        role_grants = []
        if position.default_role_id:
            role_grants = await asyncio.to_thread(gateway.role_grants, position.default_role_id)
        override_grants = []
        if mode != "disabled":
            override_grants = await asyncio.to_thread(gateway.position_grants, position.id)
    except (StoreUnavailableError, RecordMappingError) as exc:
        record_store_failure(
            "permission_lookup_failed",
            "permissions",
            exc,
            position_id=position.id,
            role_id=position.default_role_id,
        )
        return ()

    return aggregate_permissions(role_grants, override_grants, mode=mode)
