"""Health check endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from handoff.database import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy", "service": "handoff"}


@router.get("/health/db")
def db_health_check(db: Session = Depends(get_db)) -> dict[str, str]:
    """Check that the event store database answers."""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        return {"status": "unhealthy", "database": str(e)}
    return {"status": "healthy", "database": "connected"}
