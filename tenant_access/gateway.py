"""
Record store gateway.

A thin layer over the Supabase PostgREST client that knows the table layout of
the platform and maps rows into typed records. Every read is a filtered-equality
query. Transport and server errors surface as StoreUnavailableError; malformed
rows surface as RecordMappingError. Callers decide how to degrade.
"""
from __future__ import annotations

from typing import Any

from tenant_access.domain.errors import StoreUnavailableError
from tenant_access.domain.records import Grant, Membership, Organization, Position, Principal

PRINCIPAL_COLUMNS = (
    "id, email, name, nickname, is_active, is_platform_super_admin, "
    "is_platform_system_admin, password_hash, temp_password"
)
MEMBERSHIP_COLUMNS = """
    id,
    user_id,
    organization_id,
    is_organization_owner,
    primary_position_id,
    organizations (id, name, slug, status),
    staff_positions (id, name, default_role_id)
"""
ORGANIZATION_COLUMNS = "id, name, slug, status"
GRANT_COLUMNS = "module_code, resource_type, can_create, can_read, can_update, can_delete"


# PostgREST returns embedded to-one relations as an object, older
# configurations as a single-element list.
def _embedded(row: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = row.get(key)
    if isinstance(value, list):
        return value[0] if value else None
    return value or None


class RecordStoreGateway:
    def __init__(self, client: Any):
        self.client = client

    def _execute(self, table: str, operation: str, query: Any) -> list[dict[str, Any]]:
        try:
            result = query.execute()
        except Exception as exc:
            raise StoreUnavailableError(table, operation, exc) from exc
        return list(result.data or [])

    # --- principals ---

    def find_active_principals(self, field: str, value: str) -> list[Principal]:
        """Active principals whose `field` (email or nickname) equals `value`."""
        if field not in ("email", "nickname"):
            raise ValueError(f"Unsupported identifier field: {field}")
        query = self.client.table("users").select(PRINCIPAL_COLUMNS).eq(
            field, value
        ).eq("is_active", True)
        rows = self._execute("users", f"select_by_{field}", query)
        return [Principal.from_row(row) for row in rows]

    def first_active_super_admin(self) -> Principal | None:
        query = self.client.table("users").select(PRINCIPAL_COLUMNS).eq(
            "is_platform_super_admin", True
        ).eq("is_active", True).limit(1)
        rows = self._execute("users", "select_super_admin", query)
        return Principal.from_row(rows[0]) if rows else None

    def create_principal(self, data: dict[str, Any]) -> Principal:
        """Insert an organization-independent principal (onboarding flows)."""
        query = self.client.table("users").insert(data)
        rows = self._execute("users", "insert", query)
        if not rows:
            raise StoreUnavailableError("users", "insert")
        return Principal.from_row(rows[0])

    # --- memberships ---

    def active_memberships(
        self, principal_id: str, *, limit: int = 2
    ) -> list[tuple[Membership, Organization | None, Position | None]]:
        query = self.client.table("organization_users").select(MEMBERSHIP_COLUMNS).eq(
            "user_id", principal_id
        ).eq("status", "active").limit(limit)
        rows = self._execute("organization_users", "select_active", query)

        memberships = []
        for row in rows:
            org_row = _embedded(row, "organizations")
            position_row = _embedded(row, "staff_positions")
            memberships.append((
                Membership.from_row(row),
                Organization.from_row(org_row) if org_row else None,
                Position.from_row(position_row) if position_row else None,
            ))
        return memberships

    # --- grants ---

    def role_grants(self, role_id: str) -> list[Grant]:
        query = self.client.table("role_permissions").select(
            f"role_id, {GRANT_COLUMNS}"
        ).eq("role_id", role_id)
        rows = self._execute("role_permissions", "select_by_role", query)
        return [Grant.from_role_row(row) for row in rows]

    def position_grants(self, position_id: str) -> list[Grant]:
        query = self.client.table("position_permissions").select(
            f"position_id, {GRANT_COLUMNS}"
        ).eq("position_id", position_id)
        rows = self._execute("position_permissions", "select_by_position", query)
        return [Grant.from_position_row(row) for row in rows]

    # --- subscriptions ---

    def active_module_codes(self, organization_id: str) -> list[str]:
        query = self.client.table("organization_subscriptions").select(
            "modules(code)"
        ).eq("organization_id", organization_id).eq("status", "active")
        rows = self._execute("organization_subscriptions", "select_active", query)

        codes = []
        for row in rows:
            module = _embedded(row, "modules")
            if module and module.get("code"):
                codes.append(str(module["code"]))
        return codes

    # --- organizations ---

    def organization_by_id(self, organization_id: str) -> Organization | None:
        query = self.client.table("organizations").select(ORGANIZATION_COLUMNS).eq(
            "id", organization_id
        )
        rows = self._execute("organizations", "select_by_id", query)
        return Organization.from_row(rows[0]) if rows else None

    def organization_by_slug(self, slug: str) -> Organization | None:
        query = self.client.table("organizations").select(ORGANIZATION_COLUMNS).eq(
            "slug", slug
        )
        rows = self._execute("organizations", "select_by_slug", query)
        return Organization.from_row(rows[0]) if rows else None
