"""
Project request/response schemas.

Wire format uses the camelCase field names of the tracker's JSON API;
Python code uses the snake_case attribute names. Both are accepted on input.
"""
import re
from datetime import date
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from tracker.models.project import Project, ProjectType
from tracker.services.status import ProjectStatus, derive

# YYYY-MM-DD, or an RFC3339 datetime (YYYY-MM-DDTHH:MM:SS...)
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")

_http_url = TypeAdapter(HttpUrl)

DATE_FIELDS = (
    "start_date",
    "deadline",
    "completed_at",
    "delivered_at",
    "partner_share_date",
    "harshk_share_date",
    "nikku_share_date",
)
LINK_FIELDS = ("completion_video_link", "repo_link", "live_link")
AMOUNT_FIELDS = (
    "advance_received",
    "total_received",
    "partner_share_given",
    "harshk_share_given",
    "nikku_share_given",
)


def validate_iso_date(value: Optional[str]) -> Optional[str]:
    """Accept None, '', YYYY-MM-DD or an RFC3339 datetime; empty strings become None."""
    if value is None or value.strip() == "":
        return None
    value = value.strip()
    if not (_DATE_PATTERN.match(value) or _DATETIME_PATTERN.match(value)):
        raise ValueError("must be in ISO format (YYYY-MM-DD or RFC3339)")
    try:
        date.fromisoformat(value[:10])
    except ValueError:
        raise ValueError("is not a valid calendar date")
    return value


def validate_link(value: Optional[str]) -> Optional[str]:
    """Accept None, '' or an http(s) URL; the original string is kept as-is."""
    if value is None or value.strip() == "":
        return None
    value = value.strip()
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("must be a valid http(s) URL")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectFields(CamelModel):
    """Optional fields shared by create and update payloads."""
    client_name: Optional[str] = None
    description: Optional[str] = None

    start_date: Optional[str] = None
    completed_at: Optional[str] = None
    delivered_at: Optional[str] = None

    advance_received: Optional[int] = None
    total_received: Optional[int] = None

    partner_share_given: Optional[int] = None
    partner_share_date: Optional[str] = None
    harshk_share_given: Optional[int] = None
    harshk_share_date: Optional[str] = None
    nikku_share_given: Optional[int] = None
    nikku_share_date: Optional[str] = None

    completion_video_link: Optional[str] = None
    repo_link: Optional[str] = None
    live_link: Optional[str] = None

    completion_notes: Optional[str] = None
    delivery_notes: Optional[str] = None
    internal_notes: Optional[str] = None

    tech_stack: Optional[List[str]] = None
    deliverables: Optional[List[str]] = None

    @field_validator(*DATE_FIELDS, check_fields=False)
    @classmethod
    def _check_dates(cls, v):
        return validate_iso_date(v)

    @field_validator(*LINK_FIELDS)
    @classmethod
    def _check_links(cls, v):
        return validate_link(v)

    @field_validator(*AMOUNT_FIELDS)
    @classmethod
    def _check_amounts(cls, v):
        if v is not None and v < 0:
            raise ValueError("cannot be negative")
        return v

    @field_validator("tech_stack", "deliverables")
    @classmethod
    def _clean_lists(cls, v):
        if v is None:
            return None
        return [item.strip() for item in v if item and item.strip()]


class ProjectCreate(ProjectFields):
    """
    Payload for creating (or fully replacing) a project.

    id and createdAt may be supplied; the server assigns them otherwise.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    id: Optional[str] = None
    created_at: Optional[str] = None

    name: str
    type: ProjectType
    deadline: str
    total_amount: int = Field(gt=0)

    advance_received: int = 0
    total_received: int = 0

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if v.strip() == "":
            raise ValueError("Project name is required")
        return v.strip()

    @field_validator("deadline")
    @classmethod
    def _check_deadline(cls, v: str) -> str:
        v = validate_iso_date(v)
        if v is None:
            raise ValueError("Deadline is required")
        return v

    @field_validator("created_at")
    @classmethod
    def _check_created_at(cls, v):
        return validate_iso_date(v)

    @model_validator(mode="after")
    def _check_received(self):
        if self.total_received > self.total_amount:
            raise ValueError("Total received cannot exceed total amount")
        return self


class ProjectUpdate(ProjectFields):
    """
    Partial update payload.

    Only fields present in the request are applied (see ``model_fields_set``);
    a field sent as null clears the stored value. Unknown fields, id and
    createdAt are rejected.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: Optional[str] = None
    type: Optional[ProjectType] = None
    deadline: Optional[str] = None
    total_amount: Optional[int] = None

    def changes(self) -> dict:
        """Snake_case mapping of only the fields the caller supplied."""
        return self.model_dump(exclude_unset=True)


class PaymentRequest(CamelModel):
    amount: int = Field(gt=0)


class CompleteRequest(CamelModel):
    completed_at: Optional[str] = None
    force: bool = False

    @field_validator("completed_at")
    @classmethod
    def _check_date(cls, v):
        return validate_iso_date(v)


class DeliverRequest(CamelModel):
    delivered_at: Optional[str] = None
    force: bool = False

    @field_validator("delivered_at")
    @classmethod
    def _check_date(cls, v):
        return validate_iso_date(v)


class ProjectView(CamelModel):
    """
    A stored project plus its derived values, as returned by the API.

    repoLink and liveLink are withheld (null) while payment is outstanding;
    linksLocked tells the caller that they exist but are gated.
    """
    id: str
    name: str
    client_name: Optional[str] = None
    description: Optional[str] = None
    type: ProjectType
    created_at: str
    start_date: Optional[str] = None
    deadline: str
    completed_at: Optional[str] = None
    delivered_at: Optional[str] = None

    total_amount: int
    advance_received: int
    total_received: int

    partner_share_given: Optional[int] = None
    partner_share_date: Optional[str] = None
    harshk_share_given: Optional[int] = None
    harshk_share_date: Optional[str] = None
    nikku_share_given: Optional[int] = None
    nikku_share_date: Optional[str] = None

    completion_video_link: Optional[str] = None
    repo_link: Optional[str] = None
    live_link: Optional[str] = None

    completion_notes: Optional[str] = None
    delivery_notes: Optional[str] = None
    internal_notes: Optional[str] = None

    tech_stack: Optional[List[str]] = None
    deliverables: Optional[List[str]] = None

    # Derived
    status: ProjectStatus
    due_amount: int
    is_overdue: bool
    can_access_links: bool
    links_locked: bool
    missing_completion_requirements: List[str]
    missing_delivery_requirements: List[str]
    recommended_delivery_items: List[str]

    @classmethod
    def from_project(cls, project: Project, today: Optional[date] = None) -> "ProjectView":
        derived = derive(project, today=today)
        data = project.model_dump()
        has_links = bool(project.repo_link or project.live_link)
        if not derived.can_access_links:
            data["repo_link"] = None
            data["live_link"] = None
        return cls(
            **data,
            status=derived.status,
            due_amount=derived.due_amount,
            is_overdue=derived.is_overdue,
            can_access_links=derived.can_access_links,
            links_locked=has_links and not derived.can_access_links,
            missing_completion_requirements=derived.missing_completion_requirements,
            missing_delivery_requirements=derived.missing_delivery_requirements,
            recommended_delivery_items=derived.recommended_delivery_items,
        )
