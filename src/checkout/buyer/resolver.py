"""Buyer identity resolution.

Reduces the authentication collaborator's answer plus whatever the buyer typed
into the guest form down to one canonical contact record. Pure and
synchronous; nothing here touches the network.
"""

from dataclasses import dataclass
from enum import Enum


class IdentityStatus(Enum):
    INCOMPLETE = "Incomplete"
    GUEST = "Guest"
    AUTHENTICATED = "Authenticated"


@dataclass(frozen=True)
class ContactRecord:
    first_name: str
    last_name: str
    email: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class AccountProfile:
    """Identity fields supplied by the authentication collaborator."""

    account_id: str
    first_name: str
    last_name: str
    email: str


@dataclass(frozen=True)
class GuestIdentity:
    name: str
    email: str

    status = IdentityStatus.GUEST

    @property
    def contact(self) -> ContactRecord:
        first_name, last_name = split_guest_name(self.name)
        return ContactRecord(first_name=first_name, last_name=last_name, email=self.email.strip())


@dataclass(frozen=True)
class AuthenticatedIdentity:
    account: AccountProfile

    status = IdentityStatus.AUTHENTICATED

    @property
    def contact(self) -> ContactRecord:
        return ContactRecord(
            first_name=self.account.first_name,
            last_name=self.account.last_name,
            email=self.account.email,
        )


@dataclass(frozen=True)
class Incomplete:
    """Not enough information yet to know who is paying."""

    status = IdentityStatus.INCOMPLETE
    contact = None


INCOMPLETE = Incomplete()

Identity = GuestIdentity | AuthenticatedIdentity | Incomplete


def split_guest_name(name: str) -> tuple[str, str]:
    """Split a free-text guest name into (first name, last name).

    The first whitespace-separated token is the first name and the remaining
    tokens, joined by single spaces, are the last name. A single-token name
    yields an empty last name.
    """
    tokens = (name or "").split()
    if not tokens:
        return "", ""
    return tokens[0], " ".join(tokens[1:])


def resolve_identity(
    is_authenticated: bool,
    account: AccountProfile | None = None,
    guest_name: str | None = None,
    guest_email: str | None = None,
) -> Identity:
    """Resolve the buyer's identity.

    An authenticated buyer always wins and guest fields are ignored. An
    unauthenticated buyer is ``INCOMPLETE`` until both guest fields carry
    non-blank text.
    """
    if is_authenticated:
        if account is None:
            return INCOMPLETE
        return AuthenticatedIdentity(account=account)

    if not (guest_name or "").strip() or not (guest_email or "").strip():
        return INCOMPLETE
    return GuestIdentity(name=guest_name.strip(), email=guest_email.strip())
