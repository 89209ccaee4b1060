# This project was developed with assistance from AI tools.
"""Liveness and dependency health."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .. import __version__
from ..services.notifications import NotificationHub, get_notification_hub

router = APIRouter()


class HealthItem(BaseModel):
    name: str
    status: str
    message: str
    version: str | None = None


@router.get("/", response_model=list[HealthItem])
async def health(
    db_service: DatabaseService = Depends(get_db_service),
    hub: NotificationHub = Depends(get_notification_hub),
) -> list[HealthItem]:
    """API, database, and notification channel status."""
    db_ok = await db_service.health_check()
    return [
        HealthItem(
            name="API",
            status="healthy",
            message=f"{hub.session_count} live notification session(s)",
            version=__version__,
        ),
        HealthItem(
            name="Database",
            status="healthy" if db_ok else "unhealthy",
            message="PostgreSQL reachable" if db_ok else "PostgreSQL unreachable",
        ),
    ]
