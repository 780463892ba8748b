"""
FastAPI application entry point.
Includes security middleware, global error handlers, all routers, and the
background reconciliation loop started in the lifespan handler.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from rentfleet.routers import availability, bookings, health, people, reconcile, services, vehicles
from rentfleet.database import create_tables
from rentfleet.config import settings
from rentfleet.errors import FleetError, status_code_for
from rentfleet.services.reconciliation import reconciliation_runner
from rentfleet.services.reconciliation_scheduler import start_reconciliation_loop, stop_reconciliation_loop
from rentfleet.utils.logger import get_logger
import time

logger = get_logger(__name__)


# ── Startup / Shutdown ───────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 rentfleet backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")

    app.state.reconciliation_task = None
    if settings.RECONCILE_ENABLED:
        app.state.reconciliation_task = start_reconciliation_loop(
            reconciliation_runner,
            settings.RECONCILE_INTERVAL_SECONDS,
            run_immediately=settings.RECONCILE_ON_STARTUP,
        )
    else:
        logger.warning("Reconciliation loop disabled (RECONCILE_ENABLED=false)")

    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")
    yield

    logger.info("🛑 rentfleet backend shutting down...")
    await stop_reconciliation_loop(app.state.reconciliation_task)


app = FastAPI(
    title="rentfleet API",
    description="Fleet rental bookings, maintenance services and vehicle availability.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── CORS (allow the back-office dashboard to call the API) ──────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to dashboard origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth.
    Health check and docs stay open. Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Domain Error Handler ─────────────────────────────────────────────────────
@app.exception_handler(FleetError)
async def fleet_error_handler(request: Request, exc: FleetError):
    code = status_code_for(exc)
    logger.info(f"{request.method} {request.url.path} → {code} {exc.error_code}: {exc.message}")
    return JSONResponse(status_code=code, content=exc.to_dict())


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(vehicles.router,     prefix="/api/v1", tags=["🚗 Vehicles"])
app.include_router(people.router,       prefix="/api/v1", tags=["👤 Customers & Staff"])
app.include_router(bookings.router,     prefix="/api/v1", tags=["📅 Bookings"])
app.include_router(services.router,     prefix="/api/v1", tags=["🔧 Services"])
app.include_router(availability.router, prefix="/api/v1", tags=["🔍 Availability"])
app.include_router(reconcile.router,    prefix="/api/v1", tags=["🔁 Reconciliation"])
app.include_router(health.router,       prefix="/api/v1", tags=["💚 Health"])
