"""Payment authorization lifecycle for a checkout session.

State Machine (8 states):
    IDLE → AWAITING_IDENTITY → READY_TO_REQUEST → REQUESTING → AUTHORIZED
    AUTHORIZED → INVALIDATED → REQUESTING (re-issue for the new amount)
    REQUESTING → FAILED → REQUESTING (retry)
    AUTHORIZED → FINALIZED (terminal)

An authorization is bound to the chargeable amount it was issued for. Any
change to the amount's inputs clears it; a processor answer that arrives for
an amount or request generation that is no longer current is dropped.
"""

from dataclasses import dataclass
from enum import Enum

from protean.fields import DateTime, Integer, String

from checkout.domain import checkout


class AuthorizationState(Enum):
    IDLE = "Idle"
    AWAITING_IDENTITY = "Awaiting_Identity"
    READY_TO_REQUEST = "Ready_To_Request"
    REQUESTING = "Requesting"
    AUTHORIZED = "Authorized"
    INVALIDATED = "Invalidated"
    FAILED = "Failed"
    FINALIZED = "Finalized"


# Where a session may settle after its inputs change. The "ready" slot differs
# by origin: an invalidated authorization stays visible as INVALIDATED until
# it is re-requested.
_SETTLE_STATES = {
    AuthorizationState.IDLE,
    AuthorizationState.AWAITING_IDENTITY,
    AuthorizationState.READY_TO_REQUEST,
}

_VALID_TRANSITIONS = {
    AuthorizationState.IDLE: {
        AuthorizationState.AWAITING_IDENTITY,
        AuthorizationState.READY_TO_REQUEST,
    },
    AuthorizationState.AWAITING_IDENTITY: {
        AuthorizationState.IDLE,
        AuthorizationState.READY_TO_REQUEST,
    },
    AuthorizationState.READY_TO_REQUEST: {
        *_SETTLE_STATES,
        AuthorizationState.REQUESTING,
        AuthorizationState.FINALIZED,  # Zero amount the processor won't take
    },
    AuthorizationState.REQUESTING: {
        *_SETTLE_STATES,  # Superseded mid-flight
        AuthorizationState.AUTHORIZED,
        AuthorizationState.FAILED,
    },
    AuthorizationState.AUTHORIZED: {
        AuthorizationState.IDLE,
        AuthorizationState.AWAITING_IDENTITY,
        AuthorizationState.INVALIDATED,
        AuthorizationState.FINALIZED,
    },
    AuthorizationState.INVALIDATED: {
        AuthorizationState.IDLE,
        AuthorizationState.AWAITING_IDENTITY,
        AuthorizationState.REQUESTING,
        AuthorizationState.FINALIZED,
    },
    AuthorizationState.FAILED: {
        *_SETTLE_STATES,
        AuthorizationState.REQUESTING,
        AuthorizationState.FINALIZED,
    },
    AuthorizationState.FINALIZED: set(),  # Terminal
}

# States from which a fresh processor request may be issued
_REQUESTABLE_STATES = {
    AuthorizationState.READY_TO_REQUEST,
    AuthorizationState.INVALIDATED,
    AuthorizationState.FAILED,
}


def can_transition(current: AuthorizationState, target: AuthorizationState) -> bool:
    return target in _VALID_TRANSITIONS.get(current, set())


def is_requestable(state: AuthorizationState) -> bool:
    return state in _REQUESTABLE_STATES


@checkout.value_object(part_of="CheckoutSession")
class Authorization:
    """An opaque processor handle and the amount it was issued for.

    The handle is only meaningful for ``amount_cents``; the session drops the
    whole value the moment its chargeable amount moves away from it.
    """

    client_secret = String(required=True, max_length=500)
    payment_intent_id = String(max_length=255)
    amount_cents = Integer(required=True, min_value=0)
    generation = Integer(required=True, min_value=1)
    issued_at = DateTime()


@dataclass(frozen=True)
class AuthorizationTicket:
    """Handed out when a processor request is started.

    The caller passes the generation and amount back with the processor's
    answer so the session can tell whether the answer is still current.
    """

    session_id: str
    kind: str
    generation: int
    amount_cents: int
