"""Faker-based data generators for the checkout load test scenarios.

Payloads match the Pydantic request schemas of the checkout API and pass
the domain's validation (guest email shape, non-negative prices).
"""

import random
import uuid
from datetime import date, timedelta

from faker import Faker

fake = Faker()

REFERRAL_CODES = ["TAXI12345", "HOTEL2024"]

_SERVICES = [
    ("activity", "Water Sports", "Reef Snorkel Tour"),
    ("activity", "Tours", "Island Heritage Walk"),
    ("spa", "Wellness", "Ocean View Massage"),
    ("stay", "Villas", "Beachfront Villa"),
]


def guest_email() -> str:
    """Emails with one @, a dotted domain and no whitespace."""
    local = fake.user_name()[:20]
    return f"{local}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}"


def guest_data() -> dict:
    """Generate GuestInfoRequest payload."""
    return {"guest_name": fake.name(), "guest_email": guest_email()}


def account_data() -> dict:
    return {
        "account_id": f"acct-{uuid.uuid4().hex[:8]}",
        "first_name": fake.first_name(),
        "last_name": fake.last_name(),
        "email": guest_email(),
    }


def line_item_data() -> dict:
    """Generate AddLineItemRequest payload."""
    service_type, category, name = random.choice(_SERVICES)
    selected = date.today() + timedelta(days=random.randint(3, 90))
    payload = {
        "service_id": f"svc-{uuid.uuid4().hex[:8]}",
        "service_type": service_type,
        "service_name": name,
        "category": category,
        "selected_date": selected.isoformat(),
        "num_people": random.randint(1, 4),
        "price_breakdown": {
            "base_price": round(random.uniform(40, 400), 2),
            "fees": round(random.uniform(0, 15), 2),
            "taxes": round(random.uniform(0, 30), 2),
            "discounts": 0.0,
        },
    }
    if service_type == "stay":
        payload["check_out_date"] = (selected + timedelta(days=random.randint(1, 7))).isoformat()
    else:
        payload["start_time"] = "09:00"
        payload["end_time"] = "11:00"
    return payload
