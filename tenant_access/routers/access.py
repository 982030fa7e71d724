from fastapi import APIRouter, Depends, Query
from tenant_access.auth import AccessControl, SessionManager, get_access, get_current_manager, require_platform_admin
from tenant_access.models.access import AccessCheckResponse, ModuleAccessResponse, PermissionMatrixResponse
from tenant_access.models.auth import SessionResponse
from tenant_access.observability import metrics_snapshot

router = APIRouter(prefix="/api/access", tags=["access"])


@router.get("/me", response_model=SessionResponse)
async def get_me(manager: SessionManager = Depends(get_current_manager)):
    """Current session, including the effective organization."""
    return SessionResponse.from_manager(manager)


@router.get("/can", response_model=AccessCheckResponse)
async def check_permission(
    action: str = Query(...),
    module: str = Query(...),
    resource: str = Query(...),
    access: AccessControl = Depends(get_access),
):
    """Check a permission. Denial is a normal 200 response with allowed=false."""
    result = access.guard(action, module, resource)
    return AccessCheckResponse(
        action=action,
        module=module,
        resource=resource,
        allowed=access.can(action, module, resource),
        reason=result.reason,
        message=result.message,
    )


@router.get("/modules/{module}", response_model=ModuleAccessResponse)
async def check_module(module: str, access: AccessControl = Depends(get_access)):
    return ModuleAccessResponse(module=module, allowed=access.has_module(module))


@router.get("/matrix", response_model=PermissionMatrixResponse)
async def get_permission_matrix(
    module: list[str] | None = Query(None, description="Limit the matrix to these module codes"),
    access: AccessControl = Depends(get_access),
):
    """Registered modules and resources with each action evaluated for the caller."""
    return PermissionMatrixResponse(
        effective_organization_id=access.effective_organization_id,
        modules=access.permission_matrix(module),
    )


@router.get("/metrics")
async def get_metrics(manager: SessionManager = Depends(require_platform_admin)):
    """In-process counters (logins, denials, store failures) since the worker started."""
    return {"counters": metrics_snapshot()}
