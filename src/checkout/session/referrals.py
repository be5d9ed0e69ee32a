"""Referral code commands and handler.

Verification is a two-step exchange around the registry call: the session is
marked pending first, and the verdict is recorded afterwards only if the
session is still waiting for that code.
"""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.referral.pricing import ReferralVerdict, normalize_code
from checkout.session.session import CheckoutSession


@checkout.command(part_of="CheckoutSession")
class BeginReferralVerification:
    session_id = Identifier(required=True)
    code = String(required=True, max_length=100)


@checkout.command(part_of="CheckoutSession")
class RecordReferralVerification:
    """The registry's verdict on a code, reduced to what the session keeps."""

    session_id = Identifier(required=True)
    code = String(required=True, max_length=100)
    valid = Boolean(required=True)
    partner_id = String(max_length=255)
    partner_name = String(max_length=255)
    commission_percentage = Float()
    reason = String(max_length=500)


@checkout.command(part_of="CheckoutSession")
class RemoveReferralCode:
    session_id = Identifier(required=True)


@checkout.command_handler(part_of=CheckoutSession)
class ReferralCodeHandler:
    @handle(BeginReferralVerification)
    def begin_referral_verification(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        session.begin_referral_verification(code=normalize_code(command.code))
        repo.add(session)

    @handle(RecordReferralVerification)
    def record_referral_verification(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        accepted = session.record_referral_verification(
            ReferralVerdict(
                code=command.code,
                valid=command.valid,
                partner_id=command.partner_id,
                partner_name=command.partner_name,
                commission_percentage=command.commission_percentage,
                reason=command.reason,
            )
        )
        repo.add(session)
        return accepted

    @handle(RemoveReferralCode)
    def remove_referral_code(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        session.remove_referral_code()
        repo.add(session)
