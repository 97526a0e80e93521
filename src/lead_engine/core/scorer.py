"""Lead scoring engine - estimates conversion probability for sales leads."""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from .config import ScoringConfig
from .models import Lead, LeadStatus, Priority, parse_datetime, parse_int
from .signals import JourneySignal, JOURNEY_SIGNALS

logger = logging.getLogger(__name__)

DEAD_STATUSES = frozenset({LeadStatus.SPAM, LeadStatus.LOST})


@dataclass
class ScoringResult:
    """Result of scoring a single lead."""

    total_score: int
    tier: Priority
    components: Dict[str, float] = field(default_factory=dict)
    matched_signals: List[JourneySignal] = field(default_factory=list)
    is_dead: bool = False

    @property
    def summary(self) -> str:
        """Get a human-readable summary of the largest contributions."""
        positive = [(k, v) for k, v in self.components.items() if v > 0]
        if not positive:
            return "No positive signals"

        parts = []
        for name, points in sorted(positive, key=lambda x: x[1], reverse=True)[:3]:
            parts.append(f"{name} (+{round(points)})")
        return ", ".join(parts)


@dataclass
class LeadScore:
    """Proposed score and priority for a lead."""

    score: int
    priority: Priority


def score_to_priority(score: int, config: Optional[ScoringConfig] = None) -> Priority:
    """Map a score onto a priority tier."""
    config = config or ScoringConfig()
    if score >= config.hot_threshold:
        return Priority.HOT
    if score >= config.warm_threshold:
        return Priority.WARM
    return Priority.COLD


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _days_between(earlier: datetime, later: datetime) -> float:
    return (_as_utc(later) - _as_utc(earlier)).total_seconds() / 86400


def _as_number(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


class LeadScorer:
    """Scores leads from source, recency, engagement and pipeline status."""

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        signals: Optional[List[JourneySignal]] = None,
    ):
        self.config = config or ScoringConfig()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.signals = signals if signals is not None else JOURNEY_SIGNALS

    def score(self, lead: Any, now: Optional[datetime] = None) -> int:
        """Score a lead from 0 to 100."""
        return self.evaluate(lead, now=now).total_score

    def evaluate(
        self,
        lead: Any,
        now: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ScoringResult:
        """Score a lead and keep the per-component breakdown.

        Missing or malformed fields contribute nothing rather than raising.
        An explicit ``metadata`` mapping replaces the lead's source_metadata.
        """
        lead = _coerce_lead(lead)
        now = now or self.clock()

        if metadata is None:
            metadata = lead.source_metadata
        if not isinstance(metadata, dict):
            metadata = {}

        components: Dict[str, float] = {
            "source": self._source_points(lead),
            "recency": self._recency_points(lead, now),
            "engagement": self._engagement_points(lead),
        }

        matched = [s for s in self.signals if s.is_present(metadata)]
        components["journey"] = float(sum(self._signal_weight(s) for s in matched))
        components["purchases"] = self._purchase_points(metadata)
        components["stale_contact"] = 0.0 - self._stale_contact_penalty(lead, now)
        components["status"] = float(
            self.config.status_adjustments.get(_status_key(lead), 0)
        )

        # Clamped before rounding, purchase points may be infinite
        total = round(max(0.0, min(100.0, sum(components.values()))))

        is_dead = lead.status in DEAD_STATUSES or _status_key(lead) in {"spam", "lost"}
        if is_dead:
            total = min(total, self.config.dead_status_ceiling)

        return ScoringResult(
            total_score=total,
            tier=score_to_priority(total, self.config),
            components=components,
            matched_signals=matched,
            is_dead=is_dead,
        )

    def priority(self, score: int) -> Priority:
        """Priority tier for a score under this scorer's thresholds."""
        return score_to_priority(score, self.config)

    def score_leads(
        self,
        leads: Iterable[Any],
        metadata_map: Optional[Dict[str, Dict[str, Any]]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, LeadScore]:
        """Rescore a batch of leads, keyed by lead id."""
        now = now or self.clock()
        results: Dict[str, LeadScore] = {}

        for raw in leads:
            lead = _coerce_lead(raw)
            metadata = metadata_map.get(lead.id) if metadata_map else None
            result = self.evaluate(lead, now=now, metadata=metadata)
            results[lead.id] = LeadScore(score=result.total_score, priority=result.tier)

        logger.debug(f"Rescored {len(results)} leads")
        return results

    def apply_score(self, lead: Any, now: Optional[datetime] = None) -> Lead:
        """Return a copy of the lead with a recomputed score and priority."""
        lead = _coerce_lead(lead)
        result = self.evaluate(lead, now=now)
        return lead.with_score(result.total_score, result.tier)

    def explain_score(self, result: ScoringResult) -> str:
        """Get a detailed explanation of a scoring result."""
        lines = [
            f"Total Score: {result.total_score} ({result.tier.value.upper()})",
            "",
            "Components:",
        ]
        for name, points in result.components.items():
            sign = "+" if points > 0 else ""
            lines.append(f"  {name}: {sign}{points:g}")

        if result.matched_signals:
            lines.extend(["", "Matched Signals:"])
            for signal in result.matched_signals:
                lines.append(
                    f"  +{self._signal_weight(signal)}: {signal.name} [{signal.category.value}]"
                )

        if result.is_dead:
            lines.extend(["", f"Capped at {self.config.dead_status_ceiling} (spam/lost)"])

        return "\n".join(lines)

    def _source_points(self, lead: Lead) -> float:
        return float(self.config.source_prior(_source_key(lead)))

    def _recency_points(self, lead: Lead, now: datetime) -> float:
        created_at = parse_datetime(lead.created_at)
        # Missing timestamps are treated as just created
        age_days = max(0.0, _days_between(created_at, now)) if created_at else 0.0

        cutoff = self.config.recency_cutoff_days
        remaining = max(0.0, 1 - age_days / cutoff)
        return self.config.recency_max_points * remaining

    def _engagement_points(self, lead: Lead) -> float:
        contacts = max(0, parse_int(lead.contact_count))
        return float(min(self.config.engagement_cap, contacts * self.config.points_per_contact))

    def _signal_weight(self, signal: JourneySignal) -> int:
        return self.config.signal_weight_overrides.get(signal.name, signal.weight)

    def _purchase_points(self, metadata: Dict[str, Any]) -> float:
        points = 0.0

        purchases = _as_number(metadata.get("purchase_count"))
        if purchases > 0:
            points += self.config.points_per_purchase * (purchases // 1)

        spent = _as_number(metadata.get("total_spent"))
        if spent > 0:
            points += min(
                self.config.spend_points_cap,
                (spent // 100) * self.config.spend_points_per_100,
            )

        return float(points)

    def _stale_contact_penalty(self, lead: Lead, now: datetime) -> float:
        last_contacted = parse_datetime(lead.last_contacted_at)
        if not last_contacted:
            return 0.0

        days = math.floor(_days_between(last_contacted, now))
        overdue = days - self.config.stale_contact_days
        if overdue <= 0:
            return 0.0
        return float(min(self.config.stale_contact_max_penalty,
                         overdue * self.config.stale_contact_rate))


def _source_key(lead: Lead) -> str:
    # Unrecognised raw values fall through to the unknown-source prior
    if lead.source is not None:
        return lead.source.value
    return str(lead.source_value or "").strip().lower()


def _status_key(lead: Lead) -> str:
    if lead.status is not None:
        return lead.status.value
    return str(lead.status_value or "").strip().lower()


def _coerce_lead(lead: Any) -> Lead:
    if isinstance(lead, Lead):
        return lead
    if isinstance(lead, dict):
        return Lead.from_dict(lead)
    return Lead(source=None, status=None)


def calculate_lead_score(lead: Any, now: Optional[datetime] = None) -> int:
    """Quick helper to score a lead with the default configuration."""
    return LeadScorer().score(lead, now=now)
