from pydantic import BaseModel
from typing import Literal
from tenant_access.auth.lifecycle import SessionManager


class LoginRequest(BaseModel):
    identifier: str  # email or nickname
    credential: str


class OrganizationSummary(BaseModel):
    id: str
    name: str
    slug: str
    status: str


class PositionSummary(BaseModel):
    id: str
    name: str
    default_role_id: str | None


class ResolvedPermissionResponse(BaseModel):
    module_code: str
    resource_type: str
    can_create: bool
    can_read: bool
    can_update: bool
    can_delete: bool


class SessionResponse(BaseModel):
    principal_id: str
    email: str
    name: str | None
    nickname: str | None
    is_platform_admin: bool
    is_platform_super_admin: bool
    is_platform_system_admin: bool
    is_organization_owner: bool
    organization: OrganizationSummary | None
    position: PositionSummary | None
    selected_organization: OrganizationSummary | None
    effective_organization_id: str | None
    subscribed_modules: list[str]
    permissions: list[ResolvedPermissionResponse]
    requires_credential_change: bool
    ephemeral: bool

    @classmethod
    def from_manager(cls, manager: SessionManager) -> "SessionResponse":
        session = manager.session
        if session is None:
            raise ValueError("SessionManager has no session")
        organization = session.organization
        position = session.position
        selected = manager.admin.selected_organization
        return cls(
            principal_id=session.principal_id,
            email=session.email,
            name=session.name,
            nickname=session.nickname,
            is_platform_admin=session.is_platform_admin,
            is_platform_super_admin=session.is_platform_super_admin,
            is_platform_system_admin=session.is_platform_system_admin,
            is_organization_owner=session.is_organization_owner,
            organization=OrganizationSummary(**vars(organization)) if organization else None,
            position=PositionSummary(**vars(position)) if position else None,
            selected_organization=OrganizationSummary(**vars(selected)) if selected else None,
            effective_organization_id=manager.access.effective_organization_id,
            subscribed_modules=sorted(session.subscribed_modules),
            permissions=[ResolvedPermissionResponse(**p.as_dict()) for p in session.permissions],
            requires_credential_change=session.requires_credential_change,
            ephemeral=session.ephemeral,
        )


class LoginResponse(BaseModel):
    status: Literal["success", "must_change_credential", "failure"]
    reason: str | None = None
    access_token: str | None = None  # signed identifier, never the credential
    token_type: str = "bearer"
    session: SessionResponse | None = None
