"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.utils import check_database_health
from app.dependencies import get_engine
from app.schemas import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(request: Request, engine: AsyncEngine = Depends(get_engine)):
    """Return service health status.

    Checks connectivity to the database and whether the crawl
    scheduler is running in this process.
    """
    services = {}

    db_health = await check_database_health(engine)
    db_status = "ok" if db_health["healthy"] else f"error: {db_health.get('error')}"
    services["database"] = db_status

    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        scheduler_status = "disabled"
    else:
        scheduler_status = "ok" if scheduler.is_running() else "stopped"
    services["scheduler"] = scheduler_status

    overall_status = "ok" if db_status == "ok" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        scheduler=scheduler_status,
        services=services,
    )
