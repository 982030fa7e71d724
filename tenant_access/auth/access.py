"""
Authorization queries.

Everything here reads an already assembled Session and never touches the store.
Denials are plain False; nothing raises, so callers can check freely.
"""
from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Literal, TypeVar

from tenant_access.auth.context import AdminContext, Session
from tenant_access.auth.permissions import PermissionAction, parse_action, permission_allows
from tenant_access.domain.modules import get_module, module_resources, registered_modules
from tenant_access.observability import incr_metric, log_event

Check = tuple[PermissionAction | str, str, str]
T = TypeVar("T")

ACTION_LABELS = {
    PermissionAction.CREATE: "create",
    PermissionAction.READ: "view",
    PermissionAction.UPDATE: "edit",
    PermissionAction.DELETE: "delete",
}


def has_module(session: Session | None, module: str) -> bool:
    if session is None:
        return False
    if session.is_platform_admin:
        return True
    return module in session.subscribed_modules


def can(session: Session | None, action: PermissionAction | str, module: str, resource: str) -> bool:
    """
    Decide whether the session may perform `action` on `resource` in `module`.

    Order: no session denies, platform admins pass whatever the action, an
    unknown action denies, an unsubscribed module denies, organization owners
    pass, otherwise the resolved permission row decides.
    """
    if session is None:
        return False
    if session.is_platform_admin:
        return True
    parsed = parse_action(action)
    if parsed is None:
        return False
    if not has_module(session, module):
        return False
    if session.is_organization_owner:
        return True

    permission = session.permission_for(module, resource)
    if permission is None:
        return False
    return permission_allows(permission, parsed)


def can_all(session: Session | None, checks: Iterable[Check]) -> bool:
    return all(can(session, action, module, resource) for action, module, resource in checks)


def can_any(session: Session | None, checks: Iterable[Check]) -> bool:
    return any(can(session, action, module, resource) for action, module, resource in checks)


def effective_organization_id(session: Session | None, admin_context: AdminContext | None) -> str | None:
    """Organization the session's actions are scoped to."""
    if session is None:
        return None
    if session.is_platform_admin:
        return admin_context.selected_organization_id if admin_context else None
    return session.membership_organization_id


@dataclass(frozen=True)
class GuardResult:
    allowed: bool
    reason: Literal["allowed", "unauthenticated", "module_unavailable", "permission_denied"]
    message: str | None = None


def guard_operation(
    session: Session | None, action: PermissionAction | str, module: str, resource: str
) -> GuardResult:
    """Like can(), but says why an operation was refused."""
    if session is None:
        return GuardResult(False, "unauthenticated", "Authentication required")

    if not has_module(session, module):
        incr_metric("authz_denied", reason="module_unavailable", module=module)
        return GuardResult(
            False,
            "module_unavailable",
            f"The {module} module is not included in your subscription.",
        )

    if not can(session, action, module, resource):
        parsed = parse_action(action)
        label = ACTION_LABELS.get(parsed, str(action)) if parsed else str(action)
        incr_metric("authz_denied", reason="permission_denied", module=module, resource=resource)
        return GuardResult(
            False,
            "permission_denied",
            f"You don't have permission to {label} {resource}.",
        )

    return GuardResult(True, "allowed")


def permission_matrix(
    session: Session | None, modules: Iterable[str] | None = None
) -> dict[str, dict[str, dict[str, bool]]]:
    """
    Registered modules and resources with each of their actions evaluated through can().

    `modules` narrows the matrix to those codes; unregistered codes are skipped.
    """
    if modules is None:
        codes = [module.code for module in registered_modules()]
    else:
        codes = [code for code in dict.fromkeys(modules) if get_module(code) is not None]

    matrix: dict[str, dict[str, dict[str, bool]]] = {}
    for code in codes:
        resources = {}
        for resource in module_resources(code):
            resources[resource.code] = {
                action: can(session, action, code, resource.code)
                for action in resource.actions
            }
        matrix[code] = resources
    return matrix


async def run_guarded(
    session: Session | None,
    action: PermissionAction | str,
    module: str,
    resource: str,
    operation: Callable[[], Awaitable[T]],
) -> T | None:
    """Await `operation` only if guard_operation allows it; None when refused."""
    result = guard_operation(session, action, module, resource)
    if not result.allowed:
        log_event("operation_refused", reason=result.reason, module=module, resource=resource, action=action)
        return None
    return await operation()


class OperationGuard:
    """CRUD checks for one module/resource pair, always against the live session."""

    def __init__(self, access: "AccessControl", module: str, resource: str):
        self._access = access
        self.module = module
        self.resource = resource

    def can(self, action: PermissionAction | str) -> bool:
        return self._access.can(action, self.module, self.resource)

    @property
    def can_create(self) -> bool:
        return self.can(PermissionAction.CREATE)

    @property
    def can_read(self) -> bool:
        return self.can(PermissionAction.READ)

    @property
    def can_update(self) -> bool:
        return self.can(PermissionAction.UPDATE)

    @property
    def can_delete(self) -> bool:
        return self.can(PermissionAction.DELETE)

    @property
    def can_modify(self) -> bool:
        return self.can_update or self.can_delete

    @property
    def has_any_access(self) -> bool:
        return self.can_create or self.can_read or self.can_update or self.can_delete

    def guard(self, action: PermissionAction | str) -> GuardResult:
        return self._access.guard(action, self.module, self.resource)

    async def with_guard(self, action: PermissionAction | str, operation: Callable[[], Awaitable[T]]) -> T | None:
        return await self._access.with_guard(action, self.module, self.resource, operation)

    def wrap(
        self, action: PermissionAction | str, operation: Callable[..., Awaitable[T]]
    ) -> Callable[..., Awaitable[T | None]]:
        return self._access.wrap(action, self.module, self.resource, operation)


class AccessControl:
    """
    Query surface handed to feature code.

    Bound to providers rather than to values so it always reflects the session
    and admin context currently published by the owning SessionManager.
    """

    def __init__(
        self,
        session_provider: Callable[[], Session | None],
        admin_context_provider: Callable[[], AdminContext | None] = lambda: None,
    ):
        self._session_provider = session_provider
        self._admin_context_provider = admin_context_provider

    @property
    def session(self) -> Session | None:
        return self._session_provider()

    @property
    def effective_organization_id(self) -> str | None:
        return effective_organization_id(self.session, self._admin_context_provider())

    @property
    def organization_id(self) -> str | None:
        """The membership's organization; None for platform admins, whatever they have selected."""
        session = self.session
        return session.membership_organization_id if session else None

    def can(self, action: PermissionAction | str, module: str, resource: str) -> bool:
        return can(self.session, action, module, resource)

    def can_all(self, checks: Iterable[Check]) -> bool:
        return can_all(self.session, checks)

    def can_any(self, checks: Iterable[Check]) -> bool:
        return can_any(self.session, checks)

    def can_modify(self, module: str, resource: str) -> bool:
        return self.can(PermissionAction.UPDATE, module, resource) or self.can(PermissionAction.DELETE, module, resource)

    def has_any_access(self, module: str, resource: str) -> bool:
        return any(self.can(action, module, resource) for action in PermissionAction)

    def has_module(self, module: str) -> bool:
        return has_module(self.session, module)

    def guard(self, action: PermissionAction | str, module: str, resource: str) -> GuardResult:
        return guard_operation(self.session, action, module, resource)

    async def with_guard(
        self,
        action: PermissionAction | str,
        module: str,
        resource: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T | None:
        return await run_guarded(self.session, action, module, resource, operation)

    def wrap(
        self,
        action: PermissionAction | str,
        module: str,
        resource: str,
        operation: Callable[..., Awaitable[T]],
    ) -> Callable[..., Awaitable[T | None]]:
        """Guarded version of `operation`; the check runs at call time, not here."""

        @functools.wraps(operation)
        async def guarded(*args, **kwargs):
            return await self.with_guard(action, module, resource, lambda: operation(*args, **kwargs))

        return guarded

    def operation_guard(self, module: str, resource: str) -> OperationGuard:
        return OperationGuard(self, module, resource)

    def is_platform_admin(self) -> bool:
        session = self.session
        return session.is_platform_admin if session else False

    def is_developer(self) -> bool:
        session = self.session
        return session.is_platform_super_admin if session else False

    def is_system_admin(self) -> bool:
        session = self.session
        if session is None:
            return False
        return session.is_platform_system_admin and not session.is_platform_super_admin

    def can_access_admin_dashboard(self) -> bool:
        return self.is_platform_admin()

    def is_organization_admin(self) -> bool:
        session = self.session
        return session.is_organization_admin if session else False

    def permission_matrix(self, modules: Iterable[str] | None = None) -> dict[str, dict[str, dict[str, bool]]]:
        return permission_matrix(self.session, modules)
