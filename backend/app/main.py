"""
FastAPI application entry point
"""
import asyncio
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.api.v1.api import api_router
from app.core.errors import register_exception_handlers
from app.core.logger import logger
from app.db.database import SessionLocal, init_db
from app.middleware.correlation import CorrelationMiddleware
from app.services.maintenance import run_maintenance

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(api_router, prefix="/api/v1")

register_exception_handlers(app)

# ── Correlation ID middleware (must be added before CORS) ─────────────────────
app.add_middleware(CorrelationMiddleware)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID", "X-Tab-ID"],
)

# ── Local uploads ─────────────────────────────────────────────────────────────
if settings.STORAGE_BACKEND == "local" and settings.PUBLIC_FILES_BASE_URL.startswith("/"):
    app.mount(
        settings.PUBLIC_FILES_BASE_URL.rstrip("/") or "/uploads",
        StaticFiles(directory=str(Path(settings.UPLOAD_DIR)), check_dir=False),
        name="uploads",
    )


@app.get("/")
def read_root():
    logger.info("Root endpoint accessed")
    return {"message": f"{settings.APP_NAME} API is running", "version": "1.0.0", "docs": "/docs"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


# ── Maintenance loop ──────────────────────────────────────────────────────────

async def _maintenance_loop() -> None:
    """Purge expired OTP sessions and stale reset requests on an interval."""
    interval = max(1, settings.MAINTENANCE_INTERVAL_MINUTES) * 60
    while True:
        try:
            await asyncio.sleep(interval)
            db = SessionLocal()
            try:
                run_maintenance(db)
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Maintenance run failed")
            finally:
                db.close()
        except asyncio.CancelledError:
            break


# ── Startup / Shutdown ────────────────────────────────────────────────────────

@app.on_event("startup")
async def startup_event():
    logger.info(f"{settings.APP_NAME} API started")
    if settings.AUTO_CREATE_TABLES:
        init_db()
    if settings.MAINTENANCE_LOOP_ENABLED:
        app.state.maintenance_task = asyncio.create_task(_maintenance_loop())
    else:
        logger.info("Maintenance loop disabled")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"{settings.APP_NAME} API shutdown")
    task = getattr(app.state, "maintenance_task", None)
    if task:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
