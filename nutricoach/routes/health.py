"""
Health check endpoint.

Reports liveness, MongoDB connectivity and how many callers the chat rate
limiter is currently tracking. Always 200 while the process is up, so a
load balancer can tell "API down" from "API up, database unreachable".
"""

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel

from nutricoach.core import database as db_module
from nutricoach.core.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()

API_VERSION = "0.1.0"


class RateLimiterStatus(BaseModel):
    tracked_keys: int
    window_ms: int
    max_requests: int


class HealthResponse(BaseModel):
    status: str  # Always "ok" if the API process is alive
    version: str
    database: str  # "connected" | "disconnected"
    environment: str
    rate_limiter: RateLimiterStatus


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check(request: Request) -> HealthResponse:
    db_status = "disconnected"
    try:
        # Access via module reference so tests can patch db_module.db_client
        if db_module.db_client.client is not None:
            await db_module.db_client.client.admin.command("ping")
            db_status = "connected"
    except Exception as exc:
        logger.warning("DB ping failed: %s", exc)

    limiter = request.app.state.chat_limiter
    return HealthResponse(
        status="ok",
        version=API_VERSION,
        database=db_status,
        environment=settings.environment,
        rate_limiter=RateLimiterStatus(
            tracked_keys=len(limiter),
            window_ms=limiter.window_ms,
            max_requests=limiter.max_requests,
        ),
    )
