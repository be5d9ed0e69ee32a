"""FastAPI routes for the Checkout domain.

Every buyer action that can move the chargeable amount (items, identity,
referral) is followed by ``refresh_authorization`` so the response already
carries an authorization for the amount it displays, when one can be issued.

Routes that reach the referral registry or the payment processor are plain
``def`` so FastAPI runs them in its threadpool. A slow collaborator then
holds up only its own request, and other buyer actions keep landing while
the call is outstanding.
"""

from fastapi import APIRouter
from protean.utils.globals import current_domain

from checkout.api.schemas import (
    AccountSchema,
    AddLineItemRequest,
    ApplyReferralRequest,
    CheckoutIdResponse,
    CheckoutViewResponse,
    FinalizeCheckoutRequest,
    GuestInfoRequest,
    StartCheckoutRequest,
)
from checkout.session.buyer import IdentifyBuyer, SignOutBuyer, SubmitGuestInfo
from checkout.session.items import AddLineItem, RemoveLineItem
from checkout.session.management import StartCheckout
from checkout.session.orchestration import apply_referral_code, refresh_authorization
from checkout.session.payment import FinalizeCheckout
from checkout.session.referrals import RemoveReferralCode
from checkout.session.session import CheckoutSession
from checkout.utils.logging import add_context

checkout_router = APIRouter(prefix="/checkouts", tags=["checkouts"])


def _refreshed_view(session_id: str) -> CheckoutViewResponse:
    session = refresh_authorization(session_id)
    return CheckoutViewResponse.from_view(session.current_view())


@checkout_router.post("", status_code=201, response_model=CheckoutIdResponse)
async def start_checkout(body: StartCheckoutRequest) -> CheckoutIdResponse:
    account = body.account
    command = StartCheckout(
        kind=body.kind,
        account_id=account.account_id if account else None,
        first_name=account.first_name if account else None,
        last_name=account.last_name if account else None,
        email=account.email if account else None,
    )
    result = current_domain.process(command, asynchronous=False)
    add_context(session_id=result)
    return CheckoutIdResponse(session_id=result)


@checkout_router.get("/{session_id}", response_model=CheckoutViewResponse)
async def get_checkout(session_id: str) -> CheckoutViewResponse:
    session = current_domain.repository_for(CheckoutSession).get(session_id)
    return CheckoutViewResponse.from_view(session.current_view())


@checkout_router.post("/{session_id}/items", status_code=201, response_model=CheckoutViewResponse)
def add_line_item(session_id: str, body: AddLineItemRequest) -> CheckoutViewResponse:
    add_context(session_id=session_id)
    command = AddLineItem(
        session_id=session_id,
        service_id=body.service_id,
        service_type=body.service_type,
        service_name=body.service_name,
        category=body.category,
        selected_date=body.selected_date,
        start_time=body.start_time,
        end_time=body.end_time,
        check_out_date=body.check_out_date,
        num_people=body.num_people,
        base_price=body.price_breakdown.base_price,
        fees=body.price_breakdown.fees,
        taxes=body.price_breakdown.taxes,
        discounts=body.price_breakdown.discounts,
        option_id=body.option_id,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return _refreshed_view(session_id)


@checkout_router.delete("/{session_id}/items/{item_id}", response_model=CheckoutViewResponse)
def remove_line_item(session_id: str, item_id: str) -> CheckoutViewResponse:
    add_context(session_id=session_id)
    current_domain.process(RemoveLineItem(session_id=session_id, item_id=item_id), asynchronous=False)
    return _refreshed_view(session_id)


@checkout_router.post("/{session_id}/guest", response_model=CheckoutViewResponse)
def submit_guest_info(session_id: str, body: GuestInfoRequest) -> CheckoutViewResponse:
    add_context(session_id=session_id)
    command = SubmitGuestInfo(
        session_id=session_id,
        guest_name=body.guest_name,
        guest_email=body.guest_email,
    )
    current_domain.process(command, asynchronous=False)
    return _refreshed_view(session_id)


@checkout_router.put("/{session_id}/buyer", response_model=CheckoutViewResponse)
def identify_buyer(session_id: str, body: AccountSchema) -> CheckoutViewResponse:
    add_context(session_id=session_id)
    command = IdentifyBuyer(
        session_id=session_id,
        account_id=body.account_id,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
    )
    current_domain.process(command, asynchronous=False)
    return _refreshed_view(session_id)


@checkout_router.delete("/{session_id}/buyer", response_model=CheckoutViewResponse)
def sign_out_buyer(session_id: str) -> CheckoutViewResponse:
    add_context(session_id=session_id)
    current_domain.process(SignOutBuyer(session_id=session_id), asynchronous=False)
    return _refreshed_view(session_id)


@checkout_router.post("/{session_id}/referral", response_model=CheckoutViewResponse)
def apply_referral(session_id: str, body: ApplyReferralRequest) -> CheckoutViewResponse:
    add_context(session_id=session_id)
    apply_referral_code(session_id, body.code)
    return _refreshed_view(session_id)


@checkout_router.delete("/{session_id}/referral", response_model=CheckoutViewResponse)
def remove_referral(session_id: str) -> CheckoutViewResponse:
    add_context(session_id=session_id)
    current_domain.process(RemoveReferralCode(session_id=session_id), asynchronous=False)
    return _refreshed_view(session_id)


@checkout_router.post("/{session_id}/authorization", response_model=CheckoutViewResponse)
def request_authorization(session_id: str) -> CheckoutViewResponse:
    """Request, or retry after a failure, an authorization for the current amount."""
    add_context(session_id=session_id)
    return _refreshed_view(session_id)


@checkout_router.post("/{session_id}/finalize", response_model=CheckoutViewResponse)
async def finalize_checkout(session_id: str, body: FinalizeCheckoutRequest) -> CheckoutViewResponse:
    add_context(session_id=session_id)
    command = FinalizeCheckout(session_id=session_id, payment_intent_id=body.payment_intent_id)
    current_domain.process(command, asynchronous=False)
    session = current_domain.repository_for(CheckoutSession).get(session_id)
    return CheckoutViewResponse.from_view(session.current_view())
