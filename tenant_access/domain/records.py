"""
Typed records for the rows the access core reads from the store.

Every mapper takes a raw PostgREST row (a dict) and either returns a frozen
record or raises RecordMappingError when a required column is absent. Nullable
boolean columns are coalesced to False; required identifiers are never defaulted.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from tenant_access.domain.errors import RecordMappingError


def _require(row: Mapping[str, Any], field: str, record_type: str) -> Any:
    value = row.get(field)
    if value is None or value == "":
        raise RecordMappingError(record_type, field)
    return value


def _flag(row: Mapping[str, Any], field: str) -> bool:
    return bool(row.get(field) or False)


@dataclass(frozen=True)
class Principal:
    id: str
    email: str
    name: str | None = None
    nickname: str | None = None
    is_active: bool = True
    is_platform_super_admin: bool = False
    is_platform_system_admin: bool = False
    credential: str | None = None  # plaintext in the store, see auth.lifecycle
    temp_credential: bool = False

    @property
    def is_platform_admin(self) -> bool:
        return self.is_platform_super_admin or self.is_platform_system_admin

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Principal":
        return cls(
            id=str(_require(row, "id", "Principal")),
            email=str(_require(row, "email", "Principal")),
            name=row.get("name"),
            nickname=row.get("nickname"),
            is_active=_flag(row, "is_active"),
            is_platform_super_admin=_flag(row, "is_platform_super_admin"),
            is_platform_system_admin=_flag(row, "is_platform_system_admin"),
            credential=row.get("password_hash"),
            temp_credential=_flag(row, "temp_password"),
        )


@dataclass(frozen=True)
class Organization:
    id: str
    name: str
    slug: str
    status: str = "active"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Organization":
        return cls(
            id=str(_require(row, "id", "Organization")),
            name=str(_require(row, "name", "Organization")),
            slug=str(_require(row, "slug", "Organization")),
            status=row.get("status") or "active",
        )


@dataclass(frozen=True)
class Position:
    id: str
    name: str
    default_role_id: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Position":
        return cls(
            id=str(_require(row, "id", "Position")),
            name=str(_require(row, "name", "Position")),
            default_role_id=row.get("default_role_id"),
        )


@dataclass(frozen=True)
class Membership:
    id: str
    organization_id: str
    principal_id: str | None
    is_organization_owner: bool = False
    position_id: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Membership":
        return cls(
            id=str(_require(row, "id", "Membership")),
            organization_id=str(_require(row, "organization_id", "Membership")),
            principal_id=row.get("user_id"),
            is_organization_owner=_flag(row, "is_organization_owner"),
            position_id=row.get("primary_position_id"),
        )


@dataclass(frozen=True)
class Grant:
    """One CRUD grant row, owned either by a role or by a position."""

    owner_id: str
    module_code: str
    resource_type: str
    can_create: bool = False
    can_read: bool = False
    can_update: bool = False
    can_delete: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.module_code, self.resource_type)

    @classmethod
    def from_role_row(cls, row: Mapping[str, Any]) -> "Grant":
        return cls._from_row(row, owner_field="role_id", record_type="RoleGrant")

    @classmethod
    def from_position_row(cls, row: Mapping[str, Any]) -> "Grant":
        return cls._from_row(row, owner_field="position_id", record_type="PositionOverrideGrant")

    @classmethod
    def _from_row(cls, row: Mapping[str, Any], *, owner_field: str, record_type: str) -> "Grant":
        return cls(
            owner_id=str(_require(row, owner_field, record_type)),
            module_code=str(_require(row, "module_code", record_type)),
            resource_type=str(_require(row, "resource_type", record_type)),
            can_create=_flag(row, "can_create"),
            can_read=_flag(row, "can_read"),
            can_update=_flag(row, "can_update"),
            can_delete=_flag(row, "can_delete"),
        )


@dataclass(frozen=True)
class ResolvedPermission:
    module_code: str
    resource_type: str
    can_create: bool = False
    can_read: bool = False
    can_update: bool = False
    can_delete: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.module_code, self.resource_type)

    def as_dict(self) -> dict[str, Any]:
        return {
            "module_code": self.module_code,
            "resource_type": self.resource_type,
            "can_create": self.can_create,
            "can_read": self.can_read,
            "can_update": self.can_update,
            "can_delete": self.can_delete,
        }
