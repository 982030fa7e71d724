from fastapi import APIRouter, Depends, HTTPException, status
from tenant_access.auth import SessionManager, require_platform_admin
from tenant_access.models.auth import OrganizationSummary
from tenant_access.models.organizations import AdminContextResponse, AdminContextSelect

router = APIRouter(prefix="/api/admin-context", tags=["admin-context"])


def _context_response(manager: SessionManager) -> AdminContextResponse:
    selected = manager.admin.selected_organization
    return AdminContextResponse(
        selected_organization=OrganizationSummary(**vars(selected)) if selected else None,
        effective_organization_id=manager.access.effective_organization_id,
    )


@router.get("/", response_model=AdminContextResponse)
async def get_admin_context(manager: SessionManager = Depends(require_platform_admin)):
    """Organization selected through the `org` query parameter, if any."""
    return _context_response(manager)


@router.post("/select", response_model=AdminContextResponse)
async def select_organization(
    data: AdminContextSelect,
    manager: SessionManager = Depends(require_platform_admin),
):
    """Resolve an organization to act on. Clients carry the returned slug as `org`."""
    if not await manager.admin.select(data.organization_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return _context_response(manager)


@router.post("/clear", response_model=AdminContextResponse)
async def clear_organization(manager: SessionManager = Depends(require_platform_admin)):
    manager.admin.clear()
    return _context_response(manager)
