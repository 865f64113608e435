from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlmodel import Session
from typing import Any
from tracker.core.config import settings
from tracker.db.session import get_db

router = APIRouter()

@router.get("", response_model=dict[str, Any])
def health_check(db: Session = Depends(get_db)) -> Any:
    """
    Health check endpoint. Also confirms the database answers a trivial query.
    """
    db.connection().execute(text("SELECT 1"))
    return {"status": "ok", "version": settings.VERSION}
