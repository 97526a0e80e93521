"""Journey and engagement signals read from a lead's source metadata."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple


class SignalCategory(Enum):
    """Categories of metadata signals."""

    JOURNEY = "journey"  # Progress through plan/checkout
    ENGAGEMENT = "engagement"  # Email and site interaction


@dataclass(frozen=True)
class JourneySignal:
    """A metadata flag that adds points when present."""

    name: str
    keys: Tuple[str, ...]
    weight: int
    category: SignalCategory
    description: str = ""

    def is_present(self, metadata: Dict[str, Any]) -> bool:
        """Check whether any of the signal's keys is set in metadata."""
        return any(_is_set(metadata.get(key)) for key in self.keys)


def _is_set(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value > 0
    return bool(value)


JOURNEY_SIGNALS: List[JourneySignal] = [
    # === JOURNEY ===
    JourneySignal("draft_plan_created", ("has_draft_plan", "draft_plan_id"), 15,
                  SignalCategory.JOURNEY, "Built a meal plan"),
    JourneySignal("checkout_started", ("checkout_started", "checkout_session_id"), 20,
                  SignalCategory.JOURNEY, "Reached checkout"),
    JourneySignal("payment_method_added", ("has_payment_method",), 25,
                  SignalCategory.JOURNEY, "Entered payment details"),

    # === ENGAGEMENT ===
    JourneySignal("email_opened", ("email_opened",), 5,
                  SignalCategory.ENGAGEMENT, "Opened a sales email"),
    JourneySignal("link_clicked", ("link_clicked", "clicks"), 10,
                  SignalCategory.ENGAGEMENT, "Clicked through from an email"),
]


def get_signals_by_category(category: SignalCategory) -> List[JourneySignal]:
    """Get all signals for a specific category."""
    return [s for s in JOURNEY_SIGNALS if s.category == category]
