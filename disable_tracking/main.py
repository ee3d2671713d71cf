from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import logging
from .routers import admin, sites, tracking
from .middleware import api_key_middleware, logging_middleware, tracking_gate_middleware
from apscheduler.schedulers.background import BackgroundScheduler
from .config import settings as default_settings
from .database import Base, SessionLocal
from .errors import AuthorizationError, DecodeError, DisableTrackingError, InvalidSiteError, StorageError
from .services.cleanup_service import purge_closed_records
from .services.decision_cache import build_decision_cache
from .services.disable_store import DisableStateStore, make_store_loader
from .services.site_id_decoder import load_decoder
from .services.tracking_gate import TrackingGate

# Setup basic logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidSiteError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    DecodeError: status.HTTP_400_BAD_REQUEST,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def disable_tracking_error_handler(request: Request, exc: DisableTrackingError):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "message": exc.message},
    )


def create_app(session_factory=SessionLocal, settings=default_settings, decision_cache=None) -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME)

    if decision_cache is None:
        decision_cache = build_decision_cache(settings, make_store_loader(session_factory))

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.decision_cache = decision_cache
    app.state.site_id_decoder = load_decoder(settings.SITE_ID_DECODER)
    app.state.tracking_gate = TrackingGate(
        decision_cache,
        app.state.site_id_decoder,
        on_storage_error=settings.GATE_ON_STORAGE_ERROR,
        on_invalid_site_id=settings.GATE_ON_INVALID_SITE_ID,
    )

    # Middleware runs in reverse order of registration
    # 1. API key authentication (innermost - admin and site routes only)
    app.middleware("http")(api_key_middleware)

    # 2. Logging
    app.middleware("http")(logging_middleware)

    # 3. Tracking gate (outermost - a dropped tracking request has no other side effect)
    app.middleware("http")(tracking_gate_middleware)

    app.add_exception_handler(DisableTrackingError, disable_tracking_error_handler)

    app.include_router(tracking.router, tags=["Tracking"])
    app.include_router(admin.router, prefix="/admin", tags=["Admin"])
    app.include_router(sites.router, prefix="/sites", tags=["Sites"])

    @app.get("/")
    def root():
        return {"message": "Disable Tracking API running"}

    # Scheduler is created here but started on application startup to avoid
    # duplicate jobs when Uvicorn's auto-reload restarts the process.
    scheduler = BackgroundScheduler()

    def run_cleanup():
        db = session_factory()
        try:
            purge_closed_records(db, settings.DISABLE_HISTORY_RETENTION_DAYS)
        except Exception as e:
            logger.error(f"❌ Error in history cleanup job: {str(e)}")
            db.rollback()
        finally:
            db.close()

    if settings.DISABLE_HISTORY_RETENTION_DAYS > 0:
        scheduler.add_job(run_cleanup, "cron", hour=3)  # run daily at 03:00

    @app.on_event("startup")
    def install():
        db = session_factory()
        try:
            DisableStateStore(db).install()
            Base.metadata.create_all(bind=db.get_bind())
        finally:
            db.close()
        if scheduler.get_jobs() and not scheduler.running:
            scheduler.start()

    @app.on_event("shutdown")
    def stop_scheduler():
        if scheduler.running:
            scheduler.shutdown(wait=False)

    return app


app = create_app()
