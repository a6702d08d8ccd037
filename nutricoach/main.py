"""
NutriCoach API — Application entry point.

Bootstraps FastAPI, wires up middleware and exception handlers, registers
route groups, and owns the lifecycle of MongoDB and the chat rate limiter.

Run locally:
    uvicorn nutricoach.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from nutricoach.core import database
from nutricoach.core.chat_limiter import (
    ChatRateLimitExceeded,
    FixedWindowRateLimiter,
    RateLimitSweeper,
)
from nutricoach.core.config import settings
from nutricoach.core.rate_limit import limiter
from nutricoach.routes.auth import router as auth_router
from nutricoach.routes.chat import ChatError
from nutricoach.routes.chat import router as chat_router
from nutricoach.routes.health import API_VERSION
from nutricoach.routes.health import router as health_router
from nutricoach.routes.ingredients import router as ingredients_router
from nutricoach.routes.profile import router as profile_router
from nutricoach.routes.recipes import router as recipes_router

# ─── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ─── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: connect to MongoDB, start the limiter sweeper.
    Shutdown: stop the sweeper, close MongoDB.
    """
    logger.info("Starting NutriCoach API (env: %s)", settings.environment)
    # Looked up through the module so tests can patch the connection functions
    await database.connect_to_mongo()
    sweeper = RateLimitSweeper(app.state.chat_limiter)
    sweeper.start()
    app.state.chat_limiter_sweeper = sweeper
    try:
        yield
    finally:
        logger.info("Shutting down NutriCoach API")
        await sweeper.stop()
        await database.close_mongo_connection()


# ─── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="NutriCoach API",
    description=(
        "Personal nutrition assistant: profiles, onboarding, recipes, "
        "kitchen inventory and an LLM-backed chat."
    ),
    version=API_VERSION,
    lifespan=lifespan,
    # Disable docs in production to reduce attack surface
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)


# ─── Rate limiting ─────────────────────────────────────────────────────────────
# Chat: one fixed-window limiter per app instance, swept by the lifespan task.
app.state.chat_limiter = FixedWindowRateLimiter(
    window_ms=settings.chat_rate_limit_window_ms,
    max_requests=settings.chat_rate_limit_max_requests,
)

# Auth: slowapi finds its limiter on app.state.
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ChatRateLimitExceeded)
async def chat_rate_limit_handler(request: Request, exc: ChatRateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"error": str(exc)},
        headers={"Retry-After": str(exc.retry_after_seconds)},
    )


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


# ─── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Routes ────────────────────────────────────────────────────────────────────
app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(chat_router)
app.include_router(ingredients_router)
app.include_router(recipes_router)


@app.get("/", tags=["root"])
async def root():
    """API root — basic metadata."""
    return {
        "name": "NutriCoach API",
        "version": API_VERSION,
        "status": "running",
        "environment": settings.environment,
        "docs": "/docs",
    }
