"""Suggested next sales action for a lead."""

from typing import Dict, Optional, Tuple

from .config import ScoringConfig
from .models import Lead, LeadStatus, Priority
from .scorer import score_to_priority

DEFAULT_ACTION = "Review lead and update status"

NEXT_ACTIONS: Dict[Tuple[Priority, LeadStatus], str] = {
    # Hot
    (Priority.HOT, LeadStatus.NEW): "Call immediately - high intent lead",
    (Priority.HOT, LeadStatus.CONTACTED): "Follow up within 24 hours",
    (Priority.HOT, LeadStatus.QUALIFIED): "Send personalized pricing and close",
    (Priority.HOT, LeadStatus.NURTURING): "This should be qualified - move to close",

    # Warm
    (Priority.WARM, LeadStatus.NEW): "Email introduction and schedule call",
    (Priority.WARM, LeadStatus.CONTACTED): "Follow up in 2-3 days",
    (Priority.WARM, LeadStatus.QUALIFIED): "Send proposal and pricing",
    (Priority.WARM, LeadStatus.NURTURING): "Share case studies and testimonials",

    # Cold
    (Priority.COLD, LeadStatus.NEW): "Add to email nurture sequence",
    (Priority.COLD, LeadStatus.CONTACTED): "Follow up in 1 week",
    (Priority.COLD, LeadStatus.QUALIFIED): "Re-qualify - may be cold",
    (Priority.COLD, LeadStatus.NURTURING): "Monthly check-in email",
}


def suggest_next_action(
    lead: Lead,
    score: Optional[int] = None,
    config: Optional[ScoringConfig] = None,
) -> str:
    """Suggest what a rep should do next with a lead.

    Uses the lead's stored conversion_probability unless a fresh score is given.
    """
    if score is None:
        score = lead.conversion_probability
    tier = score_to_priority(score, config)
    return NEXT_ACTIONS.get((tier, lead.status), DEFAULT_ACTION)
