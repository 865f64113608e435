"""
Project Model Module

This module defines the Project model: a client engagement with its money
milestones, delivery lifecycle timestamps and delivery artifacts.
"""
import random
import string
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlmodel import SQLModel, Field, JSON, Column


class ProjectType(str, Enum):
    """Kind of work delivered to the client."""
    SOFTWARE = "software"
    HARDWARE = "hardware"
    MIXED = "mixed"


_ID_CHARSET = string.ascii_letters + string.digits


def generate_project_id() -> str:
    """Sortable opaque id, e.g. ``20240105143000-aZ3k9Q``."""
    suffix = "".join(random.choices(_ID_CHARSET, k=6))
    return f"{datetime.now():%Y%m%d%H%M%S}-{suffix}"


def utc_timestamp() -> str:
    """Current UTC time as an RFC3339 string with second precision."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ProjectBase(SQLModel):
    """
    Base Project model containing the stored fields.

    Attributes:
        name: Project name/title (required)
        client_name: Client the work is delivered to
        description: Free-form description
        type: One of "software", "hardware", "mixed"
        start_date: Start date in ISO format (YYYY-MM-DD)
        deadline: Deadline in ISO format, used for overdue computation
        completed_at: Set when internal work is finished
        delivered_at: Set when delivery to the client is final; never unset afterwards
        total_amount: Contract value in whole currency units (rupees, not paise)
        advance_received: Portion of the total paid up front
        total_received: Cumulative amount received, advance included
        *_share_given / *_share_date: Internal partner bookkeeping, informational only
        completion_video_link, repo_link, live_link: Delivery artifacts
        tech_stack, deliverables: Short string lists stored as JSON arrays
    """
    # Basic project information
    name: str = Field(nullable=False)
    client_name: Optional[str] = None
    description: Optional[str] = None
    type: ProjectType = Field(nullable=False)

    # Timeline - dates stored as ISO format strings
    start_date: Optional[str] = None
    deadline: str = Field(nullable=False)
    completed_at: Optional[str] = None
    delivered_at: Optional[str] = None

    # Money - whole major currency units, never subunits
    total_amount: int = Field(nullable=False)
    advance_received: int = 0
    total_received: int = 0

    # Partner shares: the legacy single share plus the named-partner columns
    partner_share_given: Optional[int] = None
    partner_share_date: Optional[str] = None
    harshk_share_given: Optional[int] = None
    harshk_share_date: Optional[str] = None
    nikku_share_given: Optional[int] = None
    nikku_share_date: Optional[str] = None

    # Delivery artifacts
    completion_video_link: Optional[str] = None
    repo_link: Optional[str] = None
    live_link: Optional[str] = None

    # Notes
    completion_notes: Optional[str] = None
    delivery_notes: Optional[str] = None
    internal_notes: Optional[str] = None

    # Stored as JSON arrays
    tech_stack: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    deliverables: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))


class Project(ProjectBase, table=True):
    """
    Project table model.

    id and created_at are assigned once at creation and never change.
    """
    __tablename__ = "projects"

    id: str = Field(default_factory=generate_project_id, primary_key=True)
    created_at: str = Field(default_factory=utc_timestamp, nullable=False, index=True)
