"""Lead Engine - sales lead scoring and auto-assignment."""

__version__ = "1.0.0"

from .core import Lead, LeadScorer, Priority, calculate_lead_score, score_to_priority
from .team import Assignee, AssignmentStrategy, LeadAssigner, assign_leads
from .exceptions import LeadEngineError, UnknownStrategyError, ConfigError

__all__ = [
    "Lead",
    "LeadScorer",
    "Priority",
    "calculate_lead_score",
    "score_to_priority",
    "Assignee",
    "AssignmentStrategy",
    "LeadAssigner",
    "assign_leads",
    "LeadEngineError",
    "UnknownStrategyError",
    "ConfigError",
]
