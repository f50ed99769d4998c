"""Expense Tracker API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ExpenseTrackerError → structured JSON responses
    - CORS configured from settings (not hardcoded); X-Pagination, ETag and
      Location are exposed to browser clients
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - ETag middleware is optional (settings.etag_caching)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from expense_tracker.api.caching import ETagMiddleware
from expense_tracker.api.error_handlers import register_error_handlers
from expense_tracker.api.routes import expense_group_statuses, expense_groups, health
from expense_tracker.config import get_settings
from expense_tracker.infrastructure.database import init_db
from expense_tracker.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(settings)
    logger.info("Expense Tracker API started")
    yield
    logger.info("Expense Tracker API shutting down")
    await manager.dispose()


app = FastAPI(
    title="Expense Tracker API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
if settings.etag_caching:
    app.add_middleware(ETagMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Pagination", "ETag", "Location"],
)

app.include_router(health.router)
app.include_router(expense_groups.router)
app.include_router(expense_group_statuses.router)

register_error_handlers(app)
