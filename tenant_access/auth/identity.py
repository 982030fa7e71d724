import asyncio

from tenant_access.domain.errors import RecordMappingError, StoreUnavailableError
from tenant_access.domain.records import Principal
from tenant_access.gateway import RecordStoreGateway
from tenant_access.observability import record_store_failure


def _identifier_candidates(identifier: str) -> list[tuple[str, str]]:
    raw = identifier.strip()
    candidates = [("email", raw)]
    if raw.lower() != raw:
        candidates.append(("email", raw.lower()))
    candidates.append(("nickname", raw))
    return candidates


async def resolve_principal(gateway: RecordStoreGateway, identifier: str | None) -> Principal | None:
    """
    Load the active principal for a login identifier (email or nickname).

    Returns None when nothing matches, when the match is inactive, or when the
    store cannot be read. Callers cannot tell these apart.
    """
    if not identifier or not identifier.strip():
        return None

    for field, value in _identifier_candidates(identifier):
        try:
            matches = await asyncio.to_thread(gateway.find_active_principals, field, value)
        except (StoreUnavailableError, RecordMappingError) as exc:
            record_store_failure("principal_lookup_failed", "identity", exc, field=field)
            return None

        active = [principal for principal in matches if principal.is_active]
        if active:
            return active[0]

    return None
