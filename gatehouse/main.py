# gatehouse/main.py
"""
FastAPI application entry point.
Wires the backend (document store, event emitter, live views) at startup,
maps store and wizard errors onto HTTP status codes, and mounts all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from gatehouse.routers import (
    activity_log,
    checkin,
    checkout,
    dashboard,
    debug,
    directory,
    health,
    induction_log,
    live,
    site_settings,
)
from gatehouse.database import SessionLocal, create_tables
from gatehouse.config import settings
from gatehouse.services.backend import create_backend
from gatehouse.services.checkin_service import AlreadyCheckedOutError
from gatehouse.services.errors import (
    DocumentNotFoundError,
    PermissionDeniedError,
    StoreUnavailableError,
    WizardError,
    WizardTransitionError,
)
from gatehouse.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Gatehouse Reception API",
    description="Visitor and contractor check-in, inductions and the site activity log.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (kiosk and admin screens call the API from the browser) ────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the kiosk/admin origins in production
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


# ── Error Handlers ───────────────────────────────────────────────────────────
@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    logger.warning(f"403 on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": exc.reason, "path": exc.path, "operation": exc.operation},
    )


@app.exception_handler(DocumentNotFoundError)
async def not_found_handler(request: Request, exc: DocumentNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": f"Not found: {exc.path}"})


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Store unavailable on {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "Storage unavailable"})


@app.exception_handler(WizardTransitionError)
async def wizard_transition_handler(request: Request, exc: WizardTransitionError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "step": exc.step, "reason": exc.reason},
    )


@app.exception_handler(WizardError)
async def wizard_error_handler(request: Request, exc: WizardError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(AlreadyCheckedOutError)
async def already_checked_out_handler(request: Request, exc: AlreadyCheckedOutError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(checkin.router,       prefix="/api/v1", tags=["🪪 Check-in"])
app.include_router(checkout.router,      prefix="/api/v1", tags=["🚪 Check-out"])
app.include_router(activity_log.router,  prefix="/api/v1", tags=["📋 Activity Log"])
app.include_router(induction_log.router, prefix="/api/v1", tags=["🦺 Induction Log"])
app.include_router(dashboard.router,     prefix="/api/v1", tags=["📊 Dashboard"])
app.include_router(directory.router,     prefix="/api/v1", tags=["👥 Directory"])
app.include_router(site_settings.router, prefix="/api/v1", tags=["⚙️  Settings"])
app.include_router(debug.router,         prefix="/api/v1", tags=["🐞 Debug"])
app.include_router(live.router,          prefix="/api/v1", tags=["📡 Live"])
app.include_router(health.router,        prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Gatehouse Backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    backend = create_backend(SessionLocal)
    backend.start()
    app.state.backend = backend
    missing = [key for key, value in settings.backend_config.items() if not value]
    if missing:
        logger.info(f"Backend project settings not set: {', '.join(missing)}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Gatehouse Backend shutting down...")
    backend = getattr(app.state, "backend", None)
    if backend is not None:
        await backend.shutdown()
        app.state.backend = None
