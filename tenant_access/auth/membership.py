import asyncio
import logging
from dataclasses import dataclass

from tenant_access.domain.errors import RecordMappingError, StoreUnavailableError
from tenant_access.domain.records import Membership, Organization, Position, Principal
from tenant_access.gateway import RecordStoreGateway
from tenant_access.observability import log_event, record_store_failure


@dataclass(frozen=True)
class MembershipContext:
    organization: Organization | None = None
    membership: Membership | None = None
    position: Position | None = None

    @property
    def organization_id(self) -> str | None:
        return self.membership.organization_id if self.membership else None


NO_MEMBERSHIP = MembershipContext()


async def resolve_membership(gateway: RecordStoreGateway, principal: Principal) -> MembershipContext:
    """
    Find the principal's active organization membership.

    Platform admins are organization-less here; they act on an organization only
    through the admin context. For everyone else the first active membership the
    store returns wins. The store gives no ordering guarantee, so a principal
    with several active memberships sees an arbitrary one of them.
    """
    if principal.is_platform_admin:
        return NO_MEMBERSHIP

    try:
        rows = await asyncio.to_thread(gateway.active_memberships, principal.id)
    except (StoreUnavailableError, RecordMappingError) as exc:
        record_store_failure("membership_lookup_failed", "membership", exc, principal_id=principal.id)
        return NO_MEMBERSHIP

    if not rows:
        return NO_MEMBERSHIP

    if len(rows) > 1:
        log_event(
            "multiple_active_memberships",
            level=logging.WARNING,
            principal_id=principal.id,
            using_organization_id=rows[0][0].organization_id,
        )

    membership, organization, position = rows[0]
    return MembershipContext(organization=organization, membership=membership, position=position)
