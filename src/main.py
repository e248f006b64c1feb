"""Slot auction HTTP service.

    uvicorn src.main:app --port 8000

Startup order: database, Redis, lifecycle engine, then the sweep scheduler.
Shutdown runs the same steps in reverse.
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.sa_auction.api.router import router as auction_router
from src.sa_auction.application.service import get_lifecycle_engine, shutdown_lifecycle_engine
from src.sa_common.database import check_database, engine
from src.sa_common.errors import AppError
from src.sa_common.redis_client import check_redis, close_redis
from src.sa_common.response import error_response
from src.sa_gateway.middleware.request_log import RequestLogMiddleware
from src.sa_realtime.api.ws_router import router as events_router
from src.sa_scheduler.sweeper import SweepScheduler

API_VERSION = "0.1.0"

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await check_database()
    await check_redis()

    lifecycle = get_lifecycle_engine()
    scheduler: SweepScheduler | None = None
    if settings.SWEEP_ENABLED:
        scheduler = SweepScheduler(lifecycle, settings.SWEEP_INTERVAL_SECONDS)
        scheduler.start()
    logger.info(
        "%s ready: escrow=%s sweeps=%s",
        settings.APP_NAME,
        settings.ESCROW_GATEWAY_MODE,
        "on" if scheduler else "off",
    )
    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()
        await shutdown_lifecycle_engine()
        await close_redis()
        await engine.dispose()


app = FastAPI(title=settings.APP_NAME, version=API_VERSION, lifespan=lifespan)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    body = error_response(exc, getattr(request.state, "request_id", None))
    return JSONResponse(status_code=exc.http_status, content=body.model_dump())


app.include_router(auction_router, prefix="/api/v1")
app.include_router(events_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": API_VERSION}
