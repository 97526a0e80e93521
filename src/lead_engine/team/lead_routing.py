"""Lead routing and distribution across the sales team.

One call to ``LeadAssigner.assign`` is a self-contained batch run: the roster
is copied, and the rotation cursor and workload counters live only for the
duration of the call. Leads are processed in order because each assignment
changes who is next in line for the following lead.

Territory matching compares every lead against every assignee's territories,
so a run costs roughly len(leads) x len(roster) x territories per assignee.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from ..core.models import Lead, parse_int
from ..core.scorer import LeadScore, LeadScorer
from ..exceptions import UnknownStrategyError
from .roster import Assignee, eligible_roster

logger = logging.getLogger(__name__)

# Failure reasons
NO_ELIGIBLE_ASSIGNEE = "no eligible assignee"
NO_ELIGIBLE_ASSIGNEES = "no eligible assignees"
MALFORMED_LEAD = "malformed lead record"
MISSING_LEAD_ID = "lead has no id"
DUPLICATE_LEAD = "duplicate lead id in batch"


class AssignmentStrategy(Enum):
    """Lead assignment strategies."""
    ROUND_ROBIN = "round_robin"
    WORKLOAD = "workload"
    TERRITORY = "territory"

    @classmethod
    def parse(cls, value: Union["AssignmentStrategy", str]) -> "AssignmentStrategy":
        """Parse a strategy name, accepting "round-robin" style spellings."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("-", "_"))
        except ValueError:
            raise UnknownStrategyError(value) from None


class AssignmentMethod(Enum):
    """How an individual lead ended up with its assignee."""
    ROUND_ROBIN = "round_robin"
    WORKLOAD = "workload"
    TERRITORY = "territory"
    TERRITORY_FALLBACK = "territory_fallback"


@dataclass(frozen=True)
class RotationCursor:
    """Round-robin pointer: roster slot of the last assignment, -1 before the first."""
    index: int = -1

    def advance(self, size: int) -> "RotationCursor":
        return RotationCursor((self.index + 1) % size)


@dataclass
class AssignmentOptions:
    """Options for one assignment run."""
    exclude_managers: bool = False
    priority_order: bool = False  # Assign hottest leads first
    cursor: Optional[RotationCursor] = None


@dataclass
class LeadOutcome:
    """Outcome for a single lead in a batch."""
    lead_id: str
    assignee_id: Optional[str] = None
    method: Optional[AssignmentMethod] = None
    reason: str = ""

    @property
    def success(self) -> bool:
        return self.assignee_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lead_id': self.lead_id,
            'assignee_id': self.assignee_id,
            'method': self.method.value if self.method else None,
            'reason': self.reason,
        }


@dataclass
class AssignmentResult:
    """Result of one batch assignment run."""
    strategy: AssignmentStrategy
    assignments: Dict[str, str] = field(default_factory=dict)  # lead_id -> assignee_id
    outcomes: List[LeadOutcome] = field(default_factory=list)
    next_cursor: RotationCursor = field(default_factory=RotationCursor)
    workloads: Dict[str, int] = field(default_factory=dict)  # in-run counts at the end
    scores: Dict[str, LeadScore] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def success(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def failures(self) -> List[LeadOutcome]:
        return [o for o in self.outcomes if not o.success]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with a stable key and item order."""
        return {
            'strategy': self.strategy.value,
            'total': self.total,
            'success': self.success,
            'failed': self.failed,
            'error': self.error,
            'assignments': dict(self.assignments),
            'outcomes': [o.to_dict() for o in self.outcomes],
            'next_cursor': self.next_cursor.index,
            'workloads': dict(self.workloads),
            'scores': {
                lead_id: {'score': s.score, 'priority': s.priority.value}
                for lead_id, s in self.scores.items()
            },
        }


class _AssignmentRun:
    """Per-call state: eligible roster, rotation cursor and workload counters."""

    def __init__(self, team: List[Assignee], cursor: RotationCursor):
        self.team = team
        self.cursor = cursor
        self.workloads = [max(0, parse_int(a.open_leads)) for a in team]

    def round_robin(self) -> int:
        self.cursor = self.cursor.advance(len(self.team))
        return self.cursor.index

    def least_loaded(self) -> int:
        # min() returns the first of equal counts, i.e. roster order
        return min(range(len(self.team)), key=lambda i: self.workloads[i])

    def by_territory(self, zip_code: Optional[str]) -> Optional[int]:
        if not zip_code:
            return None

        best_index, best_length = None, 0
        for i, assignee in enumerate(self.team):
            length = assignee.territory_match(zip_code)
            if length > best_length:
                best_index, best_length = i, length
        return best_index

    def record(self, index: int):
        self.workloads[index] += 1

    def workload_map(self) -> Dict[str, int]:
        return {a.id: count for a, count in zip(self.team, self.workloads)}


class LeadAssigner:
    """Assign batches of leads to sales team members."""

    def __init__(self, scorer: Optional[LeadScorer] = None):
        self.scorer = scorer or LeadScorer()

    def assign(
        self,
        leads: Iterable[Any],
        roster: Iterable[Assignee],
        strategy: Union[AssignmentStrategy, str] = AssignmentStrategy.ROUND_ROBIN,
        options: Optional[AssignmentOptions] = None,
    ) -> AssignmentResult:
        """Assign a batch of leads.

        Never raises for bad lead records: each one becomes a failed outcome
        with a reason. An unknown strategy raises UnknownStrategyError before
        any lead is touched.
        """
        strategy = AssignmentStrategy.parse(strategy)
        options = options or AssignmentOptions()
        leads = list(leads)

        team = eligible_roster(roster, exclude_managers=options.exclude_managers)
        run = _AssignmentRun(team, options.cursor or RotationCursor())
        result = AssignmentResult(strategy=strategy, next_cursor=run.cursor)

        if not leads:
            return result

        if options.priority_order:
            leads, result.scores = self._order_by_priority(leads)

        if not team:
            logger.warning(f"No eligible assignees for {len(leads)} leads")
            result.error = NO_ELIGIBLE_ASSIGNEES
            result.outcomes = [
                LeadOutcome(lead_id=_lead_id(item), reason=NO_ELIGIBLE_ASSIGNEE)
                for item in leads
            ]
            return result

        seen: Set[str] = set()
        for item in leads:
            outcome = self._assign_one(item, run, strategy, seen)
            result.outcomes.append(outcome)
            if outcome.success:
                result.assignments[outcome.lead_id] = outcome.assignee_id

        result.next_cursor = run.cursor
        result.workloads = run.workload_map()

        logger.info(
            f"Assigned {result.success}/{result.total} leads "
            f"({strategy.value}, {result.failed} failed)"
        )
        return result

    def assign_lead(
        self,
        lead: Any,
        roster: Iterable[Assignee],
        strategy: Union[AssignmentStrategy, str] = AssignmentStrategy.ROUND_ROBIN,
        options: Optional[AssignmentOptions] = None,
    ) -> LeadOutcome:
        """Assign a single lead."""
        return self.assign([lead], roster, strategy, options).outcomes[0]

    def _assign_one(
        self,
        item: Any,
        run: _AssignmentRun,
        strategy: AssignmentStrategy,
        seen: Set[str],
    ) -> LeadOutcome:
        try:
            lead = _coerce_lead(item)
        except Exception:
            logger.exception("Error reading lead record")
            lead = None
        if lead is None:
            return LeadOutcome(lead_id="", reason=MALFORMED_LEAD)
        if not lead.id:
            return LeadOutcome(lead_id="", reason=MISSING_LEAD_ID)
        if lead.id in seen:
            return LeadOutcome(lead_id=lead.id, reason=DUPLICATE_LEAD)
        seen.add(lead.id)

        try:
            index, method = self._select(lead, run, strategy)
        except Exception as e:
            logger.exception(f"Error assigning lead {lead.id}")
            return LeadOutcome(lead_id=lead.id, reason=f"unexpected error: {e}")

        run.record(index)
        assignee = run.team[index]
        logger.debug(f"Lead {lead.id} -> {assignee.id} ({method.value})")
        return LeadOutcome(lead_id=lead.id, assignee_id=assignee.id, method=method)

    def _select(
        self,
        lead: Lead,
        run: _AssignmentRun,
        strategy: AssignmentStrategy,
    ) -> Tuple[int, AssignmentMethod]:
        if strategy == AssignmentStrategy.WORKLOAD:
            return run.least_loaded(), AssignmentMethod.WORKLOAD

        if strategy == AssignmentStrategy.TERRITORY:
            index = run.by_territory(lead.territory_zip)
            if index is not None:
                return index, AssignmentMethod.TERRITORY
            # Unmatched leads still go to someone
            return run.round_robin(), AssignmentMethod.TERRITORY_FALLBACK

        return run.round_robin(), AssignmentMethod.ROUND_ROBIN

    def _order_by_priority(self, leads: List[Any]) -> Tuple[List[Any], Dict[str, LeadScore]]:
        """Order leads hottest first, keeping input order among equal scores."""
        now = self.scorer.clock()
        scored: List[Tuple[int, Any]] = []
        scores: Dict[str, LeadScore] = {}

        for item in leads:
            lead = _coerce_lead(item)
            if lead is None:
                scored.append((-1, item))
                continue
            result = self.scorer.evaluate(lead, now=now)
            scored.append((result.total_score, item))
            if lead.id:
                scores.setdefault(lead.id, LeadScore(score=result.total_score, priority=result.tier))

        ordered = [item for _, item in sorted(scored, key=lambda pair: pair[0], reverse=True)]
        return ordered, scores


def _coerce_lead(item: Any) -> Optional[Lead]:
    if isinstance(item, Lead):
        return item
    if isinstance(item, dict):
        try:
            return Lead.from_dict(item)
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Malformed lead record {item.get('id')!r}: {e}")
    return None


def _lead_id(item: Any) -> str:
    lead = _coerce_lead(item)
    return lead.id if lead else ""


def assign_leads(
    leads: Iterable[Any],
    roster: Iterable[Assignee],
    strategy: Union[AssignmentStrategy, str] = AssignmentStrategy.ROUND_ROBIN,
    exclude_managers: bool = False,
    priority_order: bool = False,
    cursor: Optional[int] = None,
    scorer: Optional[LeadScorer] = None,
) -> AssignmentResult:
    """Quick helper to assign a batch with keyword options."""
    options = AssignmentOptions(
        exclude_managers=exclude_managers,
        priority_order=priority_order,
        cursor=RotationCursor(cursor) if cursor is not None else None,
    )
    return LeadAssigner(scorer).assign(leads, roster, strategy, options)
