"""Health check endpoint."""

from fastapi import APIRouter, Depends

from studio_app import __version__
from studio_app.core.dependencies import get_database
from studio_app.db.session import Database

router = APIRouter()


@router.get("/health")
async def health_check(database: Database | None = Depends(get_database)):
    """Check DB connectivity."""
    if database is None:
        db_status = "not_configured"
    else:
        db_status = "ok" if await database.ping() else "error"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
        "version": __version__,
    }
