"""
Durable storage for the single persisted login identifier.

Only the identifier and where it was verified are stored, never a credential
and never session data; the session is rebuilt from the store on every restore.
A bootstrap identifier is only ever honoured on restore when it was saved by a
bootstrap login.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Protocol

from tenant_access.observability import log_event

IdentifierSource = Literal["store", "bootstrap"]


@dataclass(frozen=True)
class PersistedIdentifier:
    identifier: str
    source: IdentifierSource = "store"

    @property
    def is_bootstrap(self) -> bool:
        return self.source == "bootstrap"


class IdentifierStore(Protocol):
    def load_record(self) -> PersistedIdentifier | None: ...

    def load(self) -> str | None: ...

    def save(self, identifier: str, source: IdentifierSource = "store") -> None: ...

    def clear(self) -> None: ...


class MemoryIdentifierStore:
    def __init__(self, identifier: str | None = None, source: IdentifierSource = "store"):
        self.record = PersistedIdentifier(identifier, source) if identifier else None

    def load_record(self) -> PersistedIdentifier | None:
        return self.record

    def load(self) -> str | None:
        return self.record.identifier if self.record else None

    def save(self, identifier: str, source: IdentifierSource = "store") -> None:
        self.record = PersistedIdentifier(identifier, source)

    def clear(self) -> None:
        self.record = None


class FileIdentifierStore:
    """JSON file holding {"identifier", "source", "saved_at"}, replaced atomically on save."""

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def load_record(self) -> PersistedIdentifier | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        try:
            payload = json.loads(raw)
            identifier = payload.get("identifier")
            source = payload.get("source", "store")
        except (ValueError, AttributeError):
            log_event("identifier_store_corrupt", level=logging.WARNING, path=str(self.path))
            self.clear()
            return None

        if not isinstance(identifier, str) or not identifier or source not in ("store", "bootstrap"):
            self.clear()
            return None
        return PersistedIdentifier(identifier, source)

    def load(self) -> str | None:
        record = self.load_record()
        return record.identifier if record else None

    def save(self, identifier: str, source: IdentifierSource = "store") -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "identifier": identifier,
            "source": source,
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".identifier-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
