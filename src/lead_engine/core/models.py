"""Data models for sales leads."""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any


class LeadSource(Enum):
    """How a lead was captured."""

    EVENT_SIGNUP = "event_signup"
    EARLY_ACCESS = "early_access"
    ABANDONED_PLAN = "abandoned_plan"
    INCOMPLETE_CHECKOUT = "incomplete_checkout"
    INDIVIDUAL_PACK = "individual_pack"
    CONTACT_FORM = "contact_form"
    MEDICAL_REQUEST = "medical_request"
    MANUAL = "manual"


class LeadStatus(Enum):
    """Status of a lead in the sales pipeline."""

    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    NURTURING = "nurturing"
    CONVERTED = "converted"
    LOST = "lost"
    SPAM = "spam"


# Statuses that still count against a rep's workload
ACTIVE_STATUSES = frozenset({
    LeadStatus.NEW,
    LeadStatus.CONTACTED,
    LeadStatus.QUALIFIED,
    LeadStatus.NURTURING,
})

class Priority(Enum):
    """Priority tier derived from a lead score."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"

    @property
    def rank(self) -> int:
        """Ordering rank, higher is hotter."""
        return {"cold": 0, "warm": 1, "hot": 2}[self.value]


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a datetime or ISO-8601 string, returning None when it can't."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _parse_enum(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return None


def parse_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


@dataclass
class Lead:
    """A sales prospect record as loaded by the caller."""

    id: str = ""
    source: Optional[LeadSource] = LeadSource.MANUAL
    status: Optional[LeadStatus] = LeadStatus.NEW
    priority: Priority = Priority.COLD

    # Raw values as received, kept when they don't map onto an enum
    source_value: str = ""
    status_value: str = ""

    email: Optional[str] = None
    contact_count: int = 0
    conversion_probability: int = 0
    assigned_to: Optional[str] = None

    dog_weight: Optional[float] = None
    zip_code: Optional[str] = None
    source_metadata: Dict[str, Any] = field(default_factory=dict)

    # Timestamps
    created_at: Optional[datetime] = None
    assigned_at: Optional[datetime] = None
    last_contacted_at: Optional[datetime] = None

    def __post_init__(self):
        # Accept plain strings for the enum fields
        if self.source is not None and not isinstance(self.source, LeadSource):
            self.source_value = self.source_value or str(self.source)
            self.source = _parse_enum(LeadSource, self.source)
        if self.status is not None and not isinstance(self.status, LeadStatus):
            self.status_value = self.status_value or str(self.status)
            self.status = _parse_enum(LeadStatus, self.status)
        if not isinstance(self.priority, Priority):
            self.priority = _parse_enum(Priority, self.priority) or Priority.COLD

        if self.source is not None and not self.source_value:
            self.source_value = self.source.value
        if self.status is not None and not self.status_value:
            self.status_value = self.status.value

    @property
    def is_active(self) -> bool:
        """Whether the lead still counts as open work."""
        return self.status in ACTIVE_STATUSES

    @property
    def territory_zip(self) -> Optional[str]:
        """Zip code used for territory matching."""
        candidates = [self.zip_code]
        if isinstance(self.source_metadata, dict):
            candidates.append(self.source_metadata.get("zip_code"))
            candidates.append(self.source_metadata.get("zipCode"))

        for candidate in candidates:
            if candidate is None:
                continue
            text = str(candidate).strip()
            if text:
                return text
        return None

    def with_score(self, score: int, priority: Priority) -> "Lead":
        """Return a copy carrying a proposed score and priority."""
        return replace(self, conversion_probability=score, priority=priority)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lead":
        """Build a lead from a loosely-typed mapping without raising."""
        if not isinstance(data, dict):
            data = {}

        source_raw = data.get("source")
        status_raw = data.get("status")
        priority = _parse_enum(Priority, data.get("priority")) or Priority.COLD
        metadata = data.get("source_metadata")
        zip_code = data.get("zip_code")

        return cls(
            id=str(data.get("id") or ""),
            source=_parse_enum(LeadSource, source_raw),
            status=_parse_enum(LeadStatus, status_raw),
            priority=priority,
            source_value=str(source_raw or ""),
            status_value=str(status_raw or ""),
            email=data.get("email"),
            contact_count=parse_int(data.get("contact_count")),
            conversion_probability=parse_int(data.get("conversion_probability")),
            assigned_to=data.get("assigned_to") or None,
            dog_weight=_parse_float(data.get("dog_weight")),
            zip_code=str(zip_code) if zip_code not in (None, "") else None,
            source_metadata=metadata if isinstance(metadata, dict) else {},
            created_at=parse_datetime(data.get("created_at")),
            assigned_at=parse_datetime(data.get("assigned_at")),
            last_contacted_at=parse_datetime(data.get("last_contacted_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dict."""
        return {
            "id": self.id,
            "source": self.source.value if self.source else self.source_value,
            "status": self.status.value if self.status else self.status_value,
            "priority": self.priority.value,
            "email": self.email,
            "contact_count": self.contact_count,
            "conversion_probability": self.conversion_probability,
            "assigned_to": self.assigned_to,
            "dog_weight": self.dog_weight,
            "zip_code": self.zip_code,
            "source_metadata": self.source_metadata,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "last_contacted_at": self.last_contacted_at.isoformat() if self.last_contacted_at else None,
        }
