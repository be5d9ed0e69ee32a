"""Buyer identity: guest form, sign-in and sign-out commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.session.session import CheckoutSession


@checkout.command(part_of="CheckoutSession")
class SubmitGuestInfo:
    """What an unauthenticated buyer typed into the guest form."""

    session_id = Identifier(required=True)
    guest_name = String(max_length=255)
    guest_email = String(max_length=254)


@checkout.command(part_of="CheckoutSession")
class IdentifyBuyer:
    """The identity collaborator reports the buyer as signed in."""

    session_id = Identifier(required=True)
    account_id = Identifier(required=True)
    first_name = String(max_length=100)
    last_name = String(max_length=150)
    email = String(required=True, max_length=254)


@checkout.command(part_of="CheckoutSession")
class SignOutBuyer:
    session_id = Identifier(required=True)


@checkout.command_handler(part_of=CheckoutSession)
class BuyerIdentityHandler:
    @handle(SubmitGuestInfo)
    def submit_guest_info(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        session.submit_guest_info(name=command.guest_name, email=command.guest_email)
        repo.add(session)

    @handle(IdentifyBuyer)
    def identify_buyer(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        session.identify_buyer(
            account_id=command.account_id,
            first_name=command.first_name,
            last_name=command.last_name,
            email=command.email,
        )
        repo.add(session)

    @handle(SignOutBuyer)
    def sign_out_buyer(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        session.sign_out_buyer()
        repo.add(session)
