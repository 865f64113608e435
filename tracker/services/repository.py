"""
Project Repository

Persistence service for projects. One instance wraps one database session
and is handed to the API through dependency injection; it is the single
source of truth for the stored record set.
"""
from typing import List, Optional

import structlog
from pydantic import ValidationError
from sqlalchemy import update as sa_update
from sqlmodel import Session, select

from tracker.core.exceptions import (
    ProjectNotFoundError,
    ProjectValidationError,
    RequirementsNotMetError,
)
from tracker.models.project import Project, utc_timestamp
from tracker.schemas.project import ProjectCreate, ProjectUpdate
from tracker.services.status import (
    get_missing_completion_requirements,
    get_missing_delivery_requirements,
)

logger = structlog.get_logger(__name__)

# Fields that may never be changed after creation
IMMUTABLE_FIELDS = {"id", "created_at"}


def _format_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


class ProjectRepository:
    """CRUD and lifecycle writes for Project records."""

    def __init__(self, session: Session):
        self.session = session

    def list(self, skip: int = 0, limit: Optional[int] = 100) -> List[Project]:
        """Projects ordered newest first. limit=None returns every project."""
        statement = (
            select(Project)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .offset(skip)
        )
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def get(self, project_id: str) -> Project:
        project = self.session.get(Project, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def create(self, data: ProjectCreate) -> Project:
        fields = data.model_dump(exclude_none=True)
        project = Project(**fields)
        if self.session.get(Project, project.id) is not None:
            raise ProjectValidationError(f"Project id already exists: {project.id}")

        self.session.add(project)
        self.session.commit()
        self.session.refresh(project)
        logger.info("project_created", project_id=project.id, total_amount=project.total_amount)
        return project

    def replace(self, project_id: str, data: ProjectCreate) -> Project:
        """Overwrite every mutable field; id and created_at are kept."""
        project = self.get(project_id)
        fields = data.model_dump(exclude=IMMUTABLE_FIELDS)
        self._check_delivered_kept(project, fields)
        return self._apply(project, fields, event="project_replaced")

    def update(self, project_id: str, data: ProjectUpdate) -> Project:
        """
        Apply a partial update.

        Only fields present in the payload change; explicit nulls clear the
        stored value. The merged record is validated as a whole before
        anything is written.
        """
        project = self.get(project_id)
        # ProjectUpdate has no id/created_at fields and forbids extras, so only
        # editable fields can appear here
        changes = data.changes()
        if not changes:
            return project

        # Stored id/created_at may predate current validation rules
        merged = project.model_dump(exclude=IMMUTABLE_FIELDS)
        merged.update(changes)
        try:
            validated = ProjectCreate.model_validate(merged)
        except ValidationError as exc:
            raise ProjectValidationError(_format_errors(exc))
        changes = {key: getattr(validated, key) for key in changes}

        self._check_delivered_kept(project, changes)
        return self._apply(project, changes, event="project_updated")

    def delete(self, project_id: str) -> None:
        project = self.get(project_id)
        self.session.delete(project)
        self.session.commit()
        logger.info("project_deleted", project_id=project_id)

    def record_payment(self, project_id: str, amount: int) -> Project:
        """
        Add a received payment to total_received.

        The increment runs as a single UPDATE so that two payments recorded
        at the same time are both kept.
        """
        if amount <= 0:
            raise ProjectValidationError("Payment amount must be greater than 0")

        project = self.get(project_id)
        result = self.session.exec(
            sa_update(Project)
            .where(Project.id == project_id)
            .where(Project.total_received + amount <= Project.total_amount)
            .values(total_received=Project.total_received + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.session.rollback()
            raise ProjectValidationError("Payment would exceed the total amount")

        self.session.commit()
        self.session.refresh(project)
        logger.info(
            "payment_recorded",
            project_id=project_id,
            amount=amount,
            total_received=project.total_received,
        )
        return project

    def mark_completed(
        self, project_id: str, completed_at: Optional[str] = None, force: bool = False
    ) -> Project:
        project = self.get(project_id)
        missing = get_missing_completion_requirements(project)
        if missing and not force:
            raise RequirementsNotMetError("completed", missing)
        if missing:
            logger.warning("completion_forced", project_id=project_id, missing=missing)

        return self._apply(
            project,
            {"completed_at": completed_at or utc_timestamp()},
            event="project_completed",
        )

    def mark_delivered(
        self, project_id: str, delivered_at: Optional[str] = None, force: bool = False
    ) -> Project:
        project = self.get(project_id)
        if project.delivered_at:
            raise ProjectValidationError("Project is already delivered")

        missing = get_missing_delivery_requirements(project)
        if missing and not force:
            raise RequirementsNotMetError("delivered", missing)
        if missing:
            logger.warning("delivery_forced", project_id=project_id, missing=missing)

        return self._apply(
            project,
            {"delivered_at": delivered_at or utc_timestamp()},
            event="project_delivered",
        )

    def _check_delivered_kept(self, project: Project, changes: dict) -> None:
        # Delivery is one-way: once set, delivered_at can move but not be cleared
        if project.delivered_at and "delivered_at" in changes and not changes["delivered_at"]:
            raise ProjectValidationError("deliveredAt cannot be cleared once a project is delivered")

    def _apply(self, project: Project, changes: dict, event: str) -> Project:
        for key, value in changes.items():
            setattr(project, key, value)

        self.session.add(project)
        self.session.commit()
        self.session.refresh(project)
        logger.info(event, project_id=project.id, fields=sorted(changes))
        return project
