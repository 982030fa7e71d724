from dataclasses import dataclass, field

from tenant_access.domain.records import Organization, Position, ResolvedPermission


@dataclass(frozen=True)
class Session:
    """Assembled principal: identity, organization context, modules and permissions."""
    principal_id: str
    email: str
    name: str | None = None
    nickname: str | None = None
    is_platform_super_admin: bool = False
    is_platform_system_admin: bool = False
    organization: Organization | None = None
    membership_id: str | None = None
    membership_organization_id: str | None = None
    is_organization_owner: bool = False
    position: Position | None = None
    subscribed_modules: frozenset[str] = frozenset()
    permissions: tuple[ResolvedPermission, ...] = ()
    requires_credential_change: bool = False
    ephemeral: bool = False  # synthesized, never persisted
    _permission_index: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for permission in self.permissions:
            self._permission_index[permission.key] = permission

    @property
    def is_platform_admin(self) -> bool:
        return self.is_platform_super_admin or self.is_platform_system_admin

    @property
    def is_organization_admin(self) -> bool:
        return self.is_organization_owner

    def permission_for(self, module: str, resource: str) -> ResolvedPermission | None:
        return self._permission_index.get((module, resource))


@dataclass(frozen=True)
class AdminContext:
    """Organization a platform admin is acting on. Absent means none selected."""
    selected_organization: Organization

    @property
    def selected_organization_id(self) -> str:
        return self.selected_organization.id
