"""Core scoring engine for sales leads."""

from .models import Lead, LeadSource, LeadStatus, Priority
from .scorer import LeadScorer, LeadScore, ScoringResult, calculate_lead_score, score_to_priority
from .signals import JourneySignal, SignalCategory, JOURNEY_SIGNALS
from .config import ScoringConfig, ScoringConfigManager
from .actions import suggest_next_action

__all__ = [
    "Lead",
    "LeadSource",
    "LeadStatus",
    "Priority",
    "LeadScorer",
    "LeadScore",
    "ScoringResult",
    "calculate_lead_score",
    "score_to_priority",
    "JourneySignal",
    "SignalCategory",
    "JOURNEY_SIGNALS",
    "ScoringConfig",
    "ScoringConfigManager",
    "suggest_next_action",
]
