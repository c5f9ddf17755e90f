"""
SwingEats — FastAPI entrypoint
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from swingeats.api import bays, health, kitchen, menu, order_items, orders, ws
from swingeats.core.config import get_settings
from swingeats.core.errors import SwingEatsError
from swingeats.core.redis_client import close_redis
from swingeats.db.database import Base, SessionLocal, engine
from swingeats.db.seed import seed_defaults
from swingeats.middleware.idempotency import IdempotencyMiddleware
from swingeats.services.hub import get_hub
from swingeats.tasks.scheduler import KitchenScheduler, get_scheduler, set_scheduler

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.SEED_ON_STARTUP:
        async with SessionLocal() as session:
            await seed_defaults(session)
    if settings.SCHEDULER_ENABLED:
        scheduler = KitchenScheduler(SessionLocal, get_hub())
        scheduler.start()
        set_scheduler(scheduler)

    yield

    scheduler = get_scheduler()
    if scheduler is not None:
        await scheduler.stop()
        set_scheduler(None)
    await close_redis()
    await engine.dispose()


async def swingeats_error_handler(request: Request, exc: SwingEatsError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": errors})


def create_app() -> FastAPI:
    app = FastAPI(
        title="SwingEats",
        description="Order lifecycle for golf-bay food service: ordering, kitchen timers, live bay updates.",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
    )

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                       allow_methods=["*"], allow_headers=["*"])
    if settings.IDEMPOTENCY_ENABLED:
        app.add_middleware(IdempotencyMiddleware)
    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    app.add_exception_handler(SwingEatsError, swingeats_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(menu.router)
    app.include_router(bays.router)
    app.include_router(orders.router)
    app.include_router(order_items.router)
    app.include_router(kitchen.router)
    app.include_router(ws.router)
    app.include_router(health.router)

    @app.get("/")
    async def root():
        return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}

    return app


app = create_app()
