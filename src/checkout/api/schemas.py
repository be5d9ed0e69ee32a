"""Pydantic request/response schemas for the Checkout API.

External contracts, kept apart from the Protean commands they map onto.
Amounts cross this boundary as dollars.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from checkout.pricing.money import to_wire
from checkout.session.view import CheckoutView


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AccountSchema(BaseModel):
    """Identity fields supplied by the authentication collaborator."""

    account_id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str


class PriceBreakdownSchema(BaseModel):
    base_price: float = Field(ge=0)
    fees: float = Field(default=0.0, ge=0)
    taxes: float = Field(default=0.0, ge=0)
    discounts: float = Field(default=0.0, ge=0)


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class StartCheckoutRequest(BaseModel):
    kind: Literal["Cart", "Booking"] = "Cart"
    account: AccountSchema | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"kind": "Cart", "account": None},
                {
                    "kind": "Booking",
                    "account": {
                        "account_id": "acct-001",
                        "first_name": "Jane",
                        "last_name": "Doe",
                        "email": "jane@example.com",
                    },
                },
            ]
        }
    }


class AddLineItemRequest(BaseModel):
    service_id: str
    service_type: str
    service_name: str
    category: str | None = None
    selected_date: date
    start_time: str | None = None
    end_time: str | None = None
    check_out_date: date | None = None
    num_people: int = Field(ge=1)
    price_breakdown: PriceBreakdownSchema
    option_id: str | None = None
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "service_id": "act-snorkel-01",
                    "service_type": "activity",
                    "service_name": "Reef Snorkel Tour",
                    "category": "Water Sports",
                    "selected_date": "2026-12-01",
                    "start_time": "09:00",
                    "end_time": "11:00",
                    "num_people": 2,
                    "price_breakdown": {"base_price": 50.0, "fees": 2.0, "taxes": 3.0, "discounts": 0.0},
                }
            ]
        }
    }


class GuestInfoRequest(BaseModel):
    guest_name: str = ""
    guest_email: str = ""


class ApplyReferralRequest(BaseModel):
    code: str = ""


class FinalizeCheckoutRequest(BaseModel):
    payment_intent_id: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CheckoutIdResponse(BaseModel):
    session_id: str


class TotalsSchema(BaseModel):
    subtotal: float
    fees: float
    taxes: float
    discounts: float
    total: float


class LineItemSchema(BaseModel):
    item_id: str
    service_id: str
    service_type: str
    service_name: str
    selected_date: date
    num_people: int
    line_total: float


class ContactSchema(BaseModel):
    first_name: str
    last_name: str
    email: str


class ReferralSchema(BaseModel):
    status: str
    code: str | None = None
    partner_id: str | None = None
    partner_name: str | None = None
    commission_percentage: float | None = None
    discount_amount: float = 0.0
    reason: str | None = None


class AuthorizationSchema(BaseModel):
    state: str
    client_secret: str | None = None
    payment_intent_id: str | None = None
    amount: float | None = None
    failure: str | None = None


class CheckoutViewResponse(BaseModel):
    session_id: str
    kind: str
    items: list[LineItemSchema]
    totals: TotalsSchema
    chargeable_amount: float
    identity_status: str
    contact: ContactSchema | None = None
    referral: ReferralSchema
    authorization: AuthorizationSchema

    @classmethod
    def from_view(cls, view: CheckoutView) -> "CheckoutViewResponse":
        totals = view.totals
        auth = view.authorization
        return cls(
            session_id=view.session_id,
            kind=view.kind,
            items=[
                LineItemSchema(
                    item_id=item.item_id,
                    service_id=item.service_id,
                    service_type=item.service_type,
                    service_name=item.service_name,
                    selected_date=item.selected_date,
                    num_people=item.num_people,
                    line_total=to_wire(item.line_total_cents),
                )
                for item in view.items
            ],
            totals=TotalsSchema(
                subtotal=to_wire(totals.subtotal),
                fees=to_wire(totals.fees),
                taxes=to_wire(totals.taxes),
                discounts=to_wire(totals.discounts),
                total=to_wire(totals.total),
            ),
            chargeable_amount=to_wire(view.chargeable_amount_cents),
            identity_status=view.identity_status,
            contact=(
                ContactSchema(
                    first_name=view.contact.first_name,
                    last_name=view.contact.last_name,
                    email=view.contact.email,
                )
                if view.contact
                else None
            ),
            referral=ReferralSchema(
                status=view.referral.status,
                code=view.referral.code,
                partner_id=view.referral.partner_id,
                partner_name=view.referral.partner_name,
                commission_percentage=view.referral.commission_percentage,
                discount_amount=to_wire(view.referral.discount_cents),
                reason=view.referral.reason,
            ),
            authorization=AuthorizationSchema(
                state=auth.state,
                client_secret=auth.client_secret,
                payment_intent_id=auth.payment_intent_id,
                amount=to_wire(auth.amount_cents) if auth.amount_cents is not None else None,
                failure=auth.failure,
            ),
        )
