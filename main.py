"""
Unified backend entry point.

Architecture:
- One Python process, one asyncio event loop
- Two peer services running concurrently:
  1. FastAPI (HTTP API for the web frontend and the external cron)
  2. APScheduler (periodic reminder ticks)

The notification dispatcher is built once in the lifespan, before either
service can trigger a dispatch.

Run with: python main.py [--no-scheduler] [--port PORT]
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
# .env.local is gitignored and used for local dev overrides
load_dotenv(project_root / ".env.local")  # Local overrides (gitignored)
load_dotenv()  # Fallback to .env

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import NotificationSettings, check_required_env_vars, get_frontend_url
from core.database import close_engine
from core.notifications import (
    init_dispatcher,
    init_scheduler,
    reset_dispatcher,
    shutdown_scheduler,
)
from web_api.routes.cron import router as cron_router
from web_api.routes.events import router as events_router
from web_api.routes.settings import router as settings_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SENTRY_DSN = os.getenv("SENTRY_DSN")
if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=os.getenv("ENVIRONMENT", "development"),
        traces_sample_rate=0.0,
    )


def scheduler_enabled() -> bool:
    return os.getenv("DISABLE_REMINDER_SCHEDULER", "").lower() not in (
        "true",
        "1",
        "yes",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Builds the dispatcher and starts the reminder scheduler; both live for
    the whole process.
    """
    ok, warnings = check_required_env_vars()
    for warning in warnings:
        logger.warning(f"Config: {warning}")
    if not ok:
        raise RuntimeError("Missing required environment variables")

    settings = NotificationSettings.from_env()
    init_dispatcher(settings)

    if scheduler_enabled():
        init_scheduler(settings)
    else:
        logger.info("Reminder scheduler disabled (DISABLE_REMINDER_SCHEDULER)")

    yield

    logger.info("Shutting down peer services...")
    shutdown_scheduler()
    reset_dispatcher()
    await close_engine()  # Close database connections


# Create FastAPI app with lifespan
app = FastAPI(
    title="Torsdagskos Notification API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        get_frontend_url(),
        "http://localhost:4321",
        "http://127.0.0.1:4321",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(events_router)
app.include_router(settings_router)
app.include_router(cron_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Torsdagskos notification server")
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Disable the in-process reminder scheduler (use the cron endpoint)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the server on (default: 8000)",
    )
    args = parser.parse_args()

    # Set env var so it persists across uvicorn reloads
    if args.no_scheduler:
        os.environ["DISABLE_REMINDER_SCHEDULER"] = "true"

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
