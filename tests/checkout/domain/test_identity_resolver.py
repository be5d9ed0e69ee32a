"""Tests for buyer identity resolution."""

from checkout.buyer.resolver import (
    INCOMPLETE,
    AccountProfile,
    AuthenticatedIdentity,
    GuestIdentity,
    IdentityStatus,
    resolve_identity,
    split_guest_name,
)

_ACCOUNT = AccountProfile(account_id="acct-001", first_name="Ana", last_name="Lopez", email="ana@example.com")


class TestSplitGuestName:
    def test_single_token_has_empty_last_name(self):
        assert split_guest_name("Jane") == ("Jane", "")

    def test_remaining_tokens_form_last_name(self):
        assert split_guest_name("Jane Mary Doe") == ("Jane", "Mary Doe")

    def test_extra_whitespace_is_collapsed(self):
        assert split_guest_name("  Jane   Mary\tDoe ") == ("Jane", "Mary Doe")

    def test_blank_name(self):
        assert split_guest_name("   ") == ("", "")


class TestResolveGuest:
    def test_both_fields_give_guest(self):
        identity = resolve_identity(False, guest_name="Jane Doe", guest_email="jane@example.com")
        assert isinstance(identity, GuestIdentity)
        assert identity.status == IdentityStatus.GUEST
        assert identity.contact.first_name == "Jane"
        assert identity.contact.last_name == "Doe"
        assert identity.contact.email == "jane@example.com"

    def test_missing_email_is_incomplete(self):
        assert resolve_identity(False, guest_name="Jane Doe") is INCOMPLETE

    def test_blank_name_is_incomplete(self):
        assert resolve_identity(False, guest_name="  ", guest_email="jane@example.com") is INCOMPLETE

    def test_incomplete_has_no_contact(self):
        identity = resolve_identity(False)
        assert identity.status == IdentityStatus.INCOMPLETE
        assert identity.contact is None

    def test_full_name_of_single_token_guest(self):
        identity = resolve_identity(False, guest_name="Jane", guest_email="jane@example.com")
        assert identity.contact.last_name == ""
        assert identity.contact.full_name == "Jane"


class TestResolveAuthenticated:
    def test_authenticated_wins_over_guest_fields(self):
        identity = resolve_identity(True, account=_ACCOUNT, guest_name="Jane Doe", guest_email="jane@example.com")
        assert isinstance(identity, AuthenticatedIdentity)
        assert identity.contact.email == "ana@example.com"
        assert identity.contact.full_name == "Ana Lopez"

    def test_authenticated_without_account_is_incomplete(self):
        assert resolve_identity(True, guest_name="Jane", guest_email="jane@example.com") is INCOMPLETE
