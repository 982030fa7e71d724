from fastapi import Depends, Header, HTTPException, Query, status
from tenant_access.auth.access import AccessControl
from tenant_access.auth.identifier_store import MemoryIdentifierStore, PersistedIdentifier
from tenant_access.auth.jwt import decode_persisted_identifier
from tenant_access.auth.lifecycle import SessionManager
from tenant_access.auth.permissions import PermissionAction
from tenant_access.config import settings
from tenant_access.db import get_supabase
from tenant_access.gateway import RecordStoreGateway


def get_gateway() -> RecordStoreGateway:
    return RecordStoreGateway(get_supabase())


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extract token from 'Bearer <token>' header."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def new_session_manager(gateway: RecordStoreGateway, record: PersistedIdentifier | None = None) -> SessionManager:
    store = MemoryIdentifierStore(record.identifier, record.source) if record else MemoryIdentifierStore()
    return SessionManager.from_settings(gateway, settings, store)


async def get_session_manager(
    authorization: str | None = Header(None),
    org: str | None = Query(None, description="Organization slug a platform admin is acting on"),
    gateway: RecordStoreGateway = Depends(get_gateway),
) -> SessionManager:
    """
    One composition root per request.

    The bearer token only carries the identifier and its source; the session is rebuilt from
    the store here, then the `org` parameter is synced into the admin context.
    Anonymous requests get a manager with no session.
    """
    token = _extract_bearer_token(authorization)
    record = decode_persisted_identifier(token) if token else None

    manager = new_session_manager(gateway, record)
    await manager.restore_session()
    await manager.admin.sync_from_url(org)
    return manager


async def get_current_manager(
    authorization: str | None = Header(None),
    manager: SessionManager = Depends(get_session_manager),
) -> SessionManager:
    if not _extract_bearer_token(authorization):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
        )
    if manager.session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return manager


async def get_access(manager: SessionManager = Depends(get_current_manager)) -> AccessControl:
    return manager.access


async def require_platform_admin(manager: SessionManager = Depends(get_current_manager)) -> SessionManager:
    if not manager.access.is_platform_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Platform admin required",
        )
    return manager


async def require_organization_admin(access: AccessControl = Depends(get_access)) -> AccessControl:
    if not access.is_organization_admin() and not access.is_platform_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization admin required",
        )
    return access


def require_module(module: str):
    async def _require(access: AccessControl = Depends(get_access)) -> AccessControl:
        if not access.has_module(module):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"The {module} module is not included in your subscription.",
            )
        return access

    return _require


def require_permission(action: PermissionAction | str, module: str, resource: str):
    async def _require(access: AccessControl = Depends(get_access)) -> AccessControl:
        result = access.guard(action, module, resource)
        if not result.allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=result.message or "Permission denied",
            )
        return access

    return _require
