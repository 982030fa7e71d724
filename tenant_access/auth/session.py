import asyncio

from tenant_access.auth.context import Session
from tenant_access.auth.membership import resolve_membership
from tenant_access.auth.modules import resolve_subscribed_modules
from tenant_access.auth.permissions import OverrideMode, resolve_permissions
from tenant_access.domain.records import Principal
from tenant_access.gateway import RecordStoreGateway


async def build_session(
    gateway: RecordStoreGateway,
    principal: Principal,
    *,
    override_mode: OverrideMode = "covered",
) -> Session:
    """
    Assemble the full session for a principal.

    Always rebuilt from the store; nothing is carried over from a previous
    session. The returned value is complete, so callers can publish it in one
    assignment.
    """
    membership = await resolve_membership(gateway, principal)
    modules, permissions = await asyncio.gather(
        resolve_subscribed_modules(gateway, membership.organization_id),
        resolve_permissions(gateway, membership.position, mode=override_mode),
    )

    return Session(
        principal_id=principal.id,
        email=principal.email,
        name=principal.name,
        nickname=principal.nickname,
        is_platform_super_admin=principal.is_platform_super_admin,
        is_platform_system_admin=principal.is_platform_system_admin,
        organization=membership.organization,
        membership_id=membership.membership.id if membership.membership else None,
        membership_organization_id=membership.organization_id,
        is_organization_owner=(
            membership.membership.is_organization_owner if membership.membership else False
        ),
        position=membership.position,
        subscribed_modules=modules,
        permissions=permissions,
        requires_credential_change=principal.temp_credential,
    )


def synthesize_admin_session(identifier: str, name: str) -> Session:
    """Platform super-admin session with no backing principal row."""
    return Session(
        principal_id=f"ephemeral:{identifier}",
        email=identifier,
        name=name,
        is_platform_super_admin=True,
        ephemeral=True,
    )
