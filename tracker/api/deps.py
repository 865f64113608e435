"""
API Dependencies Module

FastAPI dependency functions shared by the endpoints. The repository is
created per request around the request's database session.
"""
from fastapi import Depends
from sqlmodel import Session

from tracker.db.session import get_db
from tracker.services.repository import ProjectRepository


def get_project_repository(db: Session = Depends(get_db)) -> ProjectRepository:
    """Dependency that provides a ProjectRepository bound to the request session."""
    return ProjectRepository(db)
