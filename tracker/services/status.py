"""
Project Status Engine

Pure derivations over a stored project: lifecycle status, due amount,
overdue flag, the link-access gate and the advisory requirement lists
for the completion and delivery transitions.

Every function takes any object exposing the project attributes (an ORM row
or a plain namespace), reads it and returns a value. Nothing here performs
I/O, mutates its argument or raises for absent optional fields.
"""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional


class ProjectStatus(str, Enum):
    """Lifecycle stages, declared from least to most complete."""
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED_PAYMENT_PENDING = "Completed (Payment Pending)"
    READY_TO_DELIVER = "Ready to Deliver"
    DELIVERED = "Delivered"

    @property
    def rank(self) -> int:
        return list(ProjectStatus).index(self)


# (attribute, label) pairs; order is the order reported to the caller
COMPLETION_REQUIREMENTS = (
    ("client_name", "Client name"),
    ("tech_stack", "Tech stack"),
    ("deliverables", "Deliverables"),
)

DELIVERY_REQUIREMENTS = (
    ("repo_link", "Repository link"),
    ("live_link", "Live link"),
)

# Recommended for delivery but never blocking
DELIVERY_RECOMMENDATIONS = (
    ("completion_video_link", "Completion video"),
)


def _is_set(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Calendar date of an ISO-8601 date or datetime string.

    Time of day is dropped. Returns None for missing or unparsable input.
    """
    if not _is_set(value):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def get_due_amount(project: Any) -> int:
    """Amount still owed, floored at zero."""
    return max(0, project.total_amount - project.total_received)


def can_access_links(project: Any) -> bool:
    """Repository and live links may only be exposed once nothing is due."""
    return get_due_amount(project) == 0


def get_project_status(project: Any) -> ProjectStatus:
    """
    Classify a project into its lifecycle stage.

    Precedence, first match wins:
    1. delivered_at set -> DELIVERED (terminal)
    2. completed_at set -> READY_TO_DELIVER when nothing is due,
       COMPLETED_PAYMENT_PENDING otherwise
    3. any money received -> IN_PROGRESS
    4. NOT_STARTED
    """
    if _is_set(project.delivered_at):
        return ProjectStatus.DELIVERED

    if _is_set(project.completed_at):
        if get_due_amount(project) == 0:
            return ProjectStatus.READY_TO_DELIVER
        return ProjectStatus.COMPLETED_PAYMENT_PENDING

    if project.total_received > 0:
        return ProjectStatus.IN_PROGRESS

    return ProjectStatus.NOT_STARTED


def is_overdue(project: Any, today: Optional[date] = None) -> bool:
    """
    True when the deadline has passed and the work is neither completed nor delivered.

    A deadline falling on today is not overdue. Missing or unparsable
    deadlines are never overdue.
    """
    if _is_set(project.completed_at) or _is_set(project.delivered_at):
        return False

    deadline = parse_iso_date(project.deadline)
    if deadline is None:
        return False

    if today is None:
        today = date.today()
    return deadline < today


def _missing(project: Any, requirements) -> List[str]:
    return [label for attr, label in requirements if not _is_set(getattr(project, attr, None))]


def get_missing_completion_requirements(project: Any) -> List[str]:
    """Labels of fields that should be filled in before marking the project completed."""
    return _missing(project, COMPLETION_REQUIREMENTS)


def get_missing_delivery_requirements(project: Any, include_recommended: bool = False) -> List[str]:
    """
    Labels of delivery artifacts still missing before marking the project delivered.

    The completion video is only listed when include_recommended is True.
    """
    missing = _missing(project, DELIVERY_REQUIREMENTS)
    if include_recommended:
        missing += _missing(project, DELIVERY_RECOMMENDATIONS)
    return missing


@dataclass(frozen=True)
class ProjectDerivation:
    """Every derived value for one project, computed together."""
    status: ProjectStatus
    due_amount: int
    is_overdue: bool
    can_access_links: bool
    missing_completion_requirements: List[str]
    missing_delivery_requirements: List[str]
    recommended_delivery_items: List[str]


def derive(project: Any, today: Optional[date] = None) -> ProjectDerivation:
    return ProjectDerivation(
        status=get_project_status(project),
        due_amount=get_due_amount(project),
        is_overdue=is_overdue(project, today=today),
        can_access_links=can_access_links(project),
        missing_completion_requirements=get_missing_completion_requirements(project),
        missing_delivery_requirements=get_missing_delivery_requirements(project),
        recommended_delivery_items=_missing(project, DELIVERY_RECOMMENDATIONS),
    )
