"""Sales team roster and lead assignment."""

from .roster import Assignee, AssigneeRole, count_workloads, eligible_roster
from .lead_routing import (
    LeadAssigner,
    AssignmentStrategy,
    AssignmentMethod,
    AssignmentOptions,
    AssignmentResult,
    LeadOutcome,
    RotationCursor,
    assign_leads,
)

__all__ = [
    'Assignee',
    'AssigneeRole',
    'count_workloads',
    'eligible_roster',
    'LeadAssigner',
    'AssignmentStrategy',
    'AssignmentMethod',
    'AssignmentOptions',
    'AssignmentResult',
    'LeadOutcome',
    'RotationCursor',
    'assign_leads',
]
