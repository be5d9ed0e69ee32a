"""Per-user state for Locust checkout journeys.

Each simulated buyer keeps its own state; nothing is shared across users.
"""

from dataclasses import dataclass, field


@dataclass
class CheckoutState:
    """Tracks one simulated checkout from start to finalize."""

    session_id: str | None = None
    item_ids: list[str] = field(default_factory=list)
    payment_intent_id: str | None = None
    authorization_state: str = "Idle"
