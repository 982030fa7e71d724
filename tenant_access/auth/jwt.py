from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from tenant_access.auth.identifier_store import IdentifierSource, PersistedIdentifier
from tenant_access.config import settings


def create_identifier_token(identifier: str, source: IdentifierSource = "store") -> str:
    """
    Sign the persisted login identifier for HTTP clients.

    The token carries the identifier and where it was verified ("src"). Sessions
    are rebuilt from the store on every request that presents it.
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expiration_minutes)
    payload = {
        "sub": identifier,
        "src": source,
        "type": "identifier",
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_persisted_identifier(token: str) -> PersistedIdentifier | None:
    """None if the token is invalid, expired, of another type or names an unknown source."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != "identifier":
        return None
    identifier = payload.get("sub")
    source = payload.get("src", "store")
    if not isinstance(identifier, str) or not identifier or source not in ("store", "bootstrap"):
        return None
    return PersistedIdentifier(identifier, source)


def decode_identifier_token(token: str) -> str | None:
    record = decode_persisted_identifier(token)
    return record.identifier if record else None
