"""Sales team roster."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List

from ..core.models import Lead, parse_int

logger = logging.getLogger(__name__)


class AssigneeRole(Enum):
    """Sales team roles."""
    SALES_REP = "sales_rep"
    SALES_MANAGER = "sales_manager"


@dataclass
class Assignee:
    """A sales team member who can receive leads."""
    id: str
    name: str = ""
    email: str = ""
    role: AssigneeRole = AssigneeRole.SALES_REP
    open_leads: int = 0  # Current workload
    territories: List[str] = field(default_factory=list)  # Zip codes or zip prefixes
    order: int = 0  # Roster ordering key, ties keep input order

    @property
    def is_manager(self) -> bool:
        return self.role == AssigneeRole.SALES_MANAGER

    def territory_match(self, zip_code: str) -> int:
        """Length of the most specific territory covering the zip, 0 if none."""
        best = 0
        for territory in self.territories:
            prefix = str(territory).strip()
            if prefix and zip_code.startswith(prefix):
                best = max(best, len(prefix))
        return best

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Assignee":
        """Build an assignee from a profile mapping."""
        role = data.get("role")
        if role is None:
            # Profiles carry a list of roles; a manager without the rep role is a manager
            roles = data.get("roles") or []
            role = "sales_manager" if "sales_manager" in roles and "sales_rep" not in roles else "sales_rep"

        territories = data.get("territories") or []
        if isinstance(territories, str):
            territories = [t.strip() for t in territories.split(",") if t.strip()]

        return cls(
            id=str(data["id"]),
            name=data.get("full_name") or data.get("name") or "",
            email=data.get("email") or "",
            role=AssigneeRole(role),
            open_leads=parse_int(data.get("open_leads")),
            territories=[str(t) for t in territories],
            order=parse_int(data.get("order")),
        )


def eligible_roster(roster: Iterable[Any], exclude_managers: bool = False) -> List[Assignee]:
    """Filter and order a roster snapshot for one assignment run.

    Profile dicts are converted with Assignee.from_dict; entries that are
    neither are dropped with a warning.
    """
    members = []
    for entry in roster:
        if isinstance(entry, dict):
            try:
                entry = Assignee.from_dict(entry)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Dropping invalid roster entry {entry!r}: {e}")
                continue
        if not isinstance(entry, Assignee):
            logger.warning(f"Dropping roster entry of type {type(entry).__name__}")
            continue
        members.append(entry)

    if exclude_managers:
        members = [a for a in members if not a.is_manager]
    # sorted() is stable, so equal keys keep the caller's order
    return sorted(members, key=lambda a: parse_int(a.order))


def count_workloads(leads: Iterable[Lead], roster: Iterable[Assignee]) -> List[Assignee]:
    """Return a roster copy with open_leads counted from active assigned leads."""
    roster = list(roster)
    # Initialize all reps with 0
    workloads: Dict[str, int] = {a.id: 0 for a in roster}
    for lead in leads:
        if lead.assigned_to in workloads and lead.is_active:
            workloads[lead.assigned_to] += 1

    return [replace(a, open_leads=workloads.get(a.id, 0)) for a in roster]
