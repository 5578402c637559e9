# app/main.py
"""
FastAPI application entry point.
Includes middleware, domain + global error handlers, all routers, and the
daily reset timer.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from app.routers import admin, calls, health, history, queue, ratings, tickets
from app.database import SessionLocal
from app.config import settings
from app.services.errors import QueueError, StorageUnavailable
from app.services.reset_scheduler import reset_scheduler, run_reset_loop
from app.services.schema_migration import migrate_schema
from app.utils.logger import get_logger
import time
import asyncio

logger = get_logger(__name__)

app = FastAPI(
    title="Take-a-Number Queue API",
    description="Ticket issuing, staff calling, kiosk displays and satisfaction ratings.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (kiosks and displays on the same LAN call the API) ─────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Domain Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(QueueError)
async def queue_exception_handler(request: Request, exc: QueueError):
    if isinstance(exc, StorageUnavailable):
        logger.error(f"Storage unavailable on {request.url.path}: {exc.message}")
    else:
        # Empty queues, bad service names: routine, not errors
        logger.info(f"{request.url.path} → {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(tickets.router, prefix="/api/v1", tags=["🎫 Tickets"])
app.include_router(calls.router,   prefix="/api/v1", tags=["📞 Calling"])
app.include_router(queue.router,   prefix="/api/v1", tags=["📋 Queue status"])
app.include_router(history.router, prefix="/api/v1", tags=["🗂  History"])
app.include_router(ratings.router, prefix="/api/v1", tags=["⭐ Ratings"])
app.include_router(admin.router,   prefix="/api/v1", tags=["🛠  Admin"])
app.include_router(health.router,  prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
_background_tasks = set()


@app.on_event("startup")
async def startup():
    logger.info("🚀 Queue backend starting up...")
    migrate_schema()
    logger.info("✅ Database tables ready")

    # Catch up on a midnight missed while the backend was down
    reset_scheduler.run_scheduled(SessionLocal)

    if settings.DAILY_RESET_ENABLED:
        task = asyncio.create_task(run_reset_loop(reset_scheduler, SessionLocal), name="daily-reset")
        _background_tasks.add(task)
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Queue backend shutting down...")
    for task in _background_tasks:
        task.cancel()
    _background_tasks.clear()
