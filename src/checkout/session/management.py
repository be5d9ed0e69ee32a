"""Checkout session management: start command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.buyer.resolver import AccountProfile
from checkout.domain import checkout
from checkout.session.session import CheckoutKind, CheckoutSession


@checkout.command(part_of="CheckoutSession")
class StartCheckout:
    """Open a cart or single-booking checkout.

    The account fields are filled in when the identity collaborator already
    knows the buyer is signed in.
    """

    kind = String(choices=CheckoutKind, default=CheckoutKind.CART.value)
    account_id = Identifier()
    first_name = String(max_length=100)
    last_name = String(max_length=150)
    email = String(max_length=254)


@checkout.command_handler(part_of=CheckoutSession)
class ManageCheckoutHandler:
    @handle(StartCheckout)
    def start_checkout(self, command):
        account = None
        if command.account_id:
            account = AccountProfile(
                account_id=str(command.account_id),
                first_name=command.first_name or "",
                last_name=command.last_name or "",
                email=command.email or "",
            )

        session = CheckoutSession.start(kind=command.kind, account=account)
        current_domain.repository_for(CheckoutSession).add(session)
        return str(session.id)
