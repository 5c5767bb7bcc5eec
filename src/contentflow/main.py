import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from apscheduler.schedulers.background import BackgroundScheduler
from contentflow.database import engine, Base
from contentflow.config import settings
from contentflow.errors import WorkflowError
from contentflow.models import user, import_session, idea, work_order, log_event  # noqa: F401  register tables
from contentflow.routes.import_routes import router as import_router
from contentflow.routes.idea_routes import router as idea_router
from contentflow.routes.work_order_routes import router as work_order_router
from contentflow.routes.audit_routes import router as audit_router
from contentflow.services.sla_monitor import scheduled_sla_sweep
import uvicorn

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _register_sla_job():
    """Register the SLA sweep as a cron job from SLA_SCAN_CRON."""
    parts = settings.sla_scan_cron.split()
    if len(parts) != 5:
        logger.warning("[Scheduler] Invalid SLA_SCAN_CRON '%s' — SLA sweep not scheduled", settings.sla_scan_cron)
        return
    minute, hour, day, month, day_of_week = parts
    scheduler.add_job(
        scheduled_sla_sweep,
        trigger="cron",
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=day_of_week,
        id="sla_sweep",
        name="SLA sweep",
        replace_existing=True,
    )
    logger.info("[Scheduler] Registered SLA sweep (%s)", settings.sla_scan_cron)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")
    if settings.scheduler_enabled:
        _register_sla_job()
        scheduler.start()
        logger.info("APScheduler started — %d jobs registered", len(scheduler.get_jobs()))
    yield
    # Shutdown
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("APScheduler stopped")


app = FastAPI(
    title="contentflow",
    description="Content production work orders — idea import, approval and SLA tracking",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


app.include_router(import_router)
app.include_router(idea_router)
app.include_router(work_order_router)
app.include_router(audit_router)


@app.get("/health")
def health():
    return {"status": "ok", "scheduler_jobs": len(scheduler.get_jobs())}


def start():
    """Entry point for poetry run start"""
    uvicorn.run("contentflow.main:app", host=settings.app_host, port=settings.app_port, reload=settings.debug)
