from tenant_access.auth.access import AccessControl, can, has_module
from tenant_access.auth.context import AdminContext, Session
from tenant_access.auth.dependencies import (
    get_access,
    get_current_manager,
    get_session_manager,
    require_module,
    require_organization_admin,
    require_permission,
    require_platform_admin,
)
from tenant_access.auth.lifecycle import LoginResult, LoginStatus, SessionManager
from tenant_access.auth.permissions import PermissionAction

__all__ = [
    "AccessControl",
    "AdminContext",
    "LoginResult",
    "LoginStatus",
    "PermissionAction",
    "Session",
    "SessionManager",
    "can",
    "get_access",
    "get_current_manager",
    "get_session_manager",
    "has_module",
    "require_module",
    "require_organization_admin",
    "require_permission",
    "require_platform_admin",
]
