"""
SwingEats — Health endpoint
"""
import asyncio
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from swingeats.core.config import get_settings
from swingeats.core.redis_client import redis_status
from swingeats.db.database import engine
from swingeats.services.hub import get_hub
from swingeats.tasks.scheduler import get_scheduler

settings = get_settings()
router = APIRouter(tags=["health"])


async def _ping_db():
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


@router.get("/health")
async def health_check():
    deps: dict[str, str] = {}
    healthy = True

    try:
        await asyncio.wait_for(_ping_db(), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps["database"] = "ok"
    except Exception as e:
        deps["database"] = f"error: {str(e)[:100]}"
        healthy = False

    # Redis only backs replay protection; losing it degrades, not fails, the service
    if settings.IDEMPOTENCY_ENABLED:
        deps["redis"] = await redis_status()

    scheduler = get_scheduler()
    deps["scheduler"] = "running" if scheduler is not None and scheduler.running else "stopped"
    deps["websocket_clients"] = str(len(get_hub().clients))

    return JSONResponse(
        content={"status": "healthy" if healthy else "degraded",
                 "service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION,
                 "dependencies": deps},
        status_code=200 if healthy else 503,
    )
