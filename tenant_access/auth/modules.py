import asyncio

from tenant_access.domain.errors import StoreUnavailableError
from tenant_access.gateway import RecordStoreGateway
from tenant_access.observability import record_store_failure


async def resolve_subscribed_modules(
    gateway: RecordStoreGateway, organization_id: str | None
) -> frozenset[str]:
    """Module codes the organization holds an active subscription for."""
    if not organization_id:
        return frozenset()

    try:
        codes = await asyncio.to_thread(gateway.active_module_codes, organization_id)
    except StoreUnavailableError as exc:
        record_store_failure("subscription_lookup_failed", "modules", exc, organization_id=organization_id)
        return frozenset()

    return frozenset(codes)
