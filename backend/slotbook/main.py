# backend/slotbook/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response
from pydantic import BaseModel

from .core.config import settings
from .database import Base, engine
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes import appointments, availability
from . import models  # noqa: F401  registers tables on Base.metadata

API_TITLE = "Slotbook Scheduling API"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    timestamp: str


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    if not settings.is_testing:
        # Idempotent; creates only missing tables.
        Base.metadata.create_all(bind=engine)
    logger.info(
        "Scheduling API started",
        extra={
            "environment": settings.environment,
            "reservation_strategy": settings.reservation_strategy,
            "buffer_policy": settings.buffer_policy,
        },
    )
    if settings.reservation_strategy == "best_effort":
        logger.warning(
            "reservation_degraded_mode configured: reservations run without the provider/day lock"
        )
    yield
    logger.info("Scheduling API stopped")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(availability.router)
api_v1.include_router(appointments.router)
app.include_router(api_v1)


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service="slotbook-api",
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
