"""Checkout load test scenarios.

Stateful SequentialTaskSet journeys: a guest cart that ends in payment, a
signed-in single booking with a referral code, and a buyer who keeps
changing the basket so authorizations are repeatedly invalidated.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    REFERRAL_CODES,
    account_data,
    guest_data,
    line_item_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CheckoutState


class _CheckoutJourney(SequentialTaskSet):
    kind = "Cart"

    def on_start(self):
        self.state = CheckoutState()

    def _record_view(self, body):
        auth = body["authorization"]
        self.state.authorization_state = auth["state"]
        self.state.payment_intent_id = auth["payment_intent_id"]
        self.state.item_ids = [item["item_id"] for item in body["items"]]

    def _start(self, account=None):
        with self.client.post(
            "/checkouts",
            json={"kind": self.kind, "account": account},
            catch_response=True,
            name="POST /checkouts",
        ) as resp:
            if resp.status_code == 201:
                self.state.session_id = resp.json()["session_id"]
            else:
                resp.failure(f"Start checkout failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _call(self, method, path, name, json=None, expected=200):
        with self.client.request(
            method,
            f"/checkouts/{self.state.session_id}{path}",
            json=json,
            catch_response=True,
            name=name,
        ) as resp:
            if resp.status_code == expected:
                self._record_view(resp.json())
            else:
                resp.failure(f"{name} failed: {resp.status_code}: {extract_error_detail(resp)}")

    def _finalize(self):
        if self.state.authorization_state != "Authorized":
            return
        self._call(
            "POST",
            "/finalize",
            "POST /checkouts/{id}/finalize",
            json={"payment_intent_id": self.state.payment_intent_id},
        )


class GuestCartCheckoutJourney(_CheckoutJourney):
    """Start -> Add 2 Items -> Guest Info -> Finalize.

    The guest form completes the identity, so the guest step already comes
    back Authorized.
    """

    @task
    def start(self):
        self._start()

    @task
    def add_items(self):
        for _ in range(2):
            self._call("POST", "/items", "POST /checkouts/{id}/items", json=line_item_data(), expected=201)

    @task
    def submit_guest(self):
        self._call("POST", "/guest", "POST /checkouts/{id}/guest", json=guest_data())

    @task
    def finalize(self):
        self._finalize()
        self.interrupt()


class ReferralBookingJourney(_CheckoutJourney):
    """Start (signed in) -> Add Booking -> Apply Referral -> Finalize."""

    kind = "Booking"

    @task
    def start(self):
        self._start(account=account_data())

    @task
    def add_booking(self):
        self._call("POST", "/items", "POST /checkouts/{id}/items", json=line_item_data(), expected=201)

    @task
    def apply_referral(self):
        self._call("POST", "/referral", "POST /checkouts/{id}/referral", json={"code": random.choice(REFERRAL_CODES)})

    @task
    def finalize(self):
        self._finalize()
        self.interrupt()


class IndecisiveBuyerJourney(_CheckoutJourney):
    """Guest Info -> Add 3 Items -> Remove 2 -> Apply Referral -> Remove Referral.

    Every step after the first item invalidates the live authorization and
    forces a fresh one for the new amount.
    """

    @task
    def start(self):
        self._start()

    @task
    def submit_guest(self):
        self._call("POST", "/guest", "POST /checkouts/{id}/guest", json=guest_data())

    @task
    def add_items(self):
        for _ in range(3):
            self._call("POST", "/items", "POST /checkouts/{id}/items", json=line_item_data(), expected=201)

    @task
    def remove_items(self):
        for item_id in self.state.item_ids[:2]:
            self._call("DELETE", f"/items/{item_id}", "DELETE /checkouts/{id}/items/{item_id}")

    @task
    def apply_referral(self):
        self._call("POST", "/referral", "POST /checkouts/{id}/referral", json={"code": random.choice(REFERRAL_CODES)})

    @task
    def remove_referral(self):
        self._call("DELETE", "/referral", "DELETE /checkouts/{id}/referral")
        self.interrupt()


class CheckoutUser(HttpUser):
    """Locust user simulating buyers at checkout.

    Weighted distribution:
    - 50% Guest cart to payment
    - 30% Signed-in booking with a referral code
    - 20% Basket churn
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        GuestCartCheckoutJourney: 5,
        ReferralBookingJourney: 3,
        IndecisiveBuyerJourney: 2,
    }
