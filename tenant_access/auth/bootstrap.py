"""
Fixed fallback accounts.

Login consults these only when no principal at all matches the identifier,
so an empty store never locks every operator out. The credentials are
plaintext and ship with the code. Whether to keep, rotate or remove them is
an open product decision (see DESIGN.md); do not change them silently.
"""
from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class BootstrapAccount:
    identifier: str
    credential: str
    name: str


BOOTSTRAP_ACCOUNTS: Final[tuple[BootstrapAccount, ...]] = (
    BootstrapAccount(identifier="platform-bootstrap", credential="bootstrap-change-me!", name="Admin"),
    BootstrapAccount(identifier="ops@platform.local", credential="bootstrap-change-me!", name="Operations"),
)


def find_bootstrap_account(identifier: str | None) -> BootstrapAccount | None:
    wanted = (identifier or "").strip().lower()
    for account in BOOTSTRAP_ACCOUNTS:
        if account.identifier.lower() == wanted:
            return account
    return None


def match_bootstrap_account(identifier: str | None, credential: str | None) -> BootstrapAccount | None:
    account = find_bootstrap_account(identifier)
    if account is None or account.credential != credential:
        return None
    return account
