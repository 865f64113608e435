"""
Project Endpoints Module

This module provides CRUD endpoints for projects plus the lifecycle actions
(record payment, mark completed, mark delivered). Every response carries the
derived status values, and repository/live links are withheld until the
project is fully paid.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from tracker.api import deps
from tracker.core.config import settings
from tracker.schemas.project import (
    CompleteRequest,
    DeliverRequest,
    PaymentRequest,
    ProjectCreate,
    ProjectUpdate,
    ProjectView,
)
from tracker.services.repository import ProjectRepository
from tracker.services.status import ProjectStatus

router = APIRouter()


def _parse_status(value: str) -> ProjectStatus:
    """Accept a display value ("Ready to Deliver") or an enum name ("READY_TO_DELIVER")."""
    for member in ProjectStatus:
        if value == member.value or value.upper() == member.name:
            return member
    raise HTTPException(
        status_code=422,
        detail=f"Unknown status: {value}",
    )


@router.get("", response_model=List[ProjectView])
def list_projects(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[str] = Query(None, alias="status"),
    overdue: Optional[bool] = None,
    repo: ProjectRepository = Depends(deps.get_project_repository),
):
    """
    Retrieve a paginated list of projects, newest first.

    Args:
        skip: Number of records to skip (for pagination)
        limit: Maximum number of records to return
        status_filter: Only return projects in this lifecycle status
        overdue: Only return projects whose overdue flag matches
        repo: Project repository

    Returns:
        List[ProjectView]: Projects with their derived values
    """
    wanted = _parse_status(status_filter) if status_filter else None

    if wanted is None and overdue is None:
        return [ProjectView.from_project(p) for p in repo.list(skip=skip, limit=limit)]

    # Derived values are not stored, so filtering happens before paginating in memory
    views = [ProjectView.from_project(p) for p in repo.list(limit=None)]
    if wanted is not None:
        views = [v for v in views if v.status == wanted]
    if overdue is not None:
        views = [v for v in views if v.is_overdue == overdue]
    return views[skip:skip + limit]


@router.get("/{project_id}", response_model=ProjectView)
def read_project(
    project_id: str,
    repo: ProjectRepository = Depends(deps.get_project_repository),
):
    """
    Get a specific project by ID.

    Raises:
        HTTPException 404: If the project doesn't exist
    """
    return ProjectView.from_project(repo.get(project_id))


@router.post("", response_model=ProjectView, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    repo: ProjectRepository = Depends(deps.get_project_repository),
):
    """
    Create a new project.

    id and createdAt are generated when not supplied.
    """
    return ProjectView.from_project(repo.create(project_in))


@router.put("/{project_id}", response_model=ProjectView)
def replace_project(
    project_id: str,
    project_in: ProjectCreate,
    repo: ProjectRepository = Depends(deps.get_project_repository),
):
    """
    Replace every editable field of a project.

    id and createdAt are never changed, even if present in the body.
    """
    return ProjectView.from_project(repo.replace(project_id, project_in))


@router.patch("/{project_id}", response_model=ProjectView)
def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    repo: ProjectRepository = Depends(deps.get_project_repository),
):
    """
    Update an existing project.

    Only the fields present in the body change. Sending a field as null clears it.

    Raises:
        HTTPException 404: If the project doesn't exist
        HTTPException 422: If the merged project would be invalid
    """
    return ProjectView.from_project(repo.update(project_id, project_update))


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    repo: ProjectRepository = Depends(deps.get_project_repository),
):
    """
    Delete a project permanently.

    Raises:
        HTTPException 404: If the project doesn't exist
    """
    repo.delete(project_id)
    return {"status": "success", "detail": "Project deleted"}


@router.post("/{project_id}/payments", response_model=ProjectView)
def record_payment(
    project_id: str,
    payment: PaymentRequest,
    repo: ProjectRepository = Depends(deps.get_project_repository),
):
    """Add a received payment to the project's total received."""
    return ProjectView.from_project(repo.record_payment(project_id, payment.amount))


@router.post("/{project_id}/complete", response_model=ProjectView)
def complete_project(
    project_id: str,
    body: Optional[CompleteRequest] = None,
    repo: ProjectRepository = Depends(deps.get_project_repository),
):
    """
    Mark the internal work as finished.

    Responds 409 with the missing fields unless force is set.
    """
    body = body or CompleteRequest()
    project = repo.mark_completed(project_id, completed_at=body.completed_at, force=body.force)
    return ProjectView.from_project(project)


@router.post("/{project_id}/deliver", response_model=ProjectView)
def deliver_project(
    project_id: str,
    body: Optional[DeliverRequest] = None,
    repo: ProjectRepository = Depends(deps.get_project_repository),
):
    """
    Mark the project as delivered to the client. This cannot be undone.

    Responds 409 with the missing delivery artifacts unless force is set.
    """
    body = body or DeliverRequest()
    project = repo.mark_delivered(project_id, delivered_at=body.delivered_at, force=body.force)
    return ProjectView.from_project(project)
