# app/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import alerts, assets, custody, health, people, presence, scan
from app.database import SessionLocal, create_tables
from app.config import settings
from app.services.asset_state_service import reconcile_status_cache
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)


app = FastAPI(
    title="Gate Custody Ledger API",
    description="Key and vehicle custody, visitor presence and overdue alerts for the security gate.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (allow gate terminals on the LAN to call the API) ──────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to terminal IPs in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth shared by all gate terminals.
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


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(custody.router,  prefix="/api/v1", tags=["🔑 Custody Ledger"])
app.include_router(assets.router,   prefix="/api/v1", tags=["🚗 Assets & Live Status"])
app.include_router(alerts.router,   prefix="/api/v1", tags=["⏰ Overdue Alerts"])
app.include_router(people.router,   prefix="/api/v1", tags=["🪪 People & Sign-in"])
app.include_router(presence.router, prefix="/api/v1", tags=["🚶 Visitors & Staff Vehicles"])
app.include_router(scan.router,     prefix="/api/v1", tags=["📷 Barcode Input"])
app.include_router(health.router,   prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Gate Custody Ledger starting up...")
    create_tables()
    logger.info("✅ Database tables ready")

    # Cached asset status must match the ledger before the first checkout
    db = SessionLocal()
    try:
        result = reconcile_status_cache(db)
        if result.ok:
            logger.info(f"🔑 Asset status cache checked — {result.value} row(s) repaired")
        else:
            logger.error(f"Asset status reconciliation failed: {result.error.message}")
    finally:
        db.close()

    logger.info(
        f"⏰ Overdue thresholds: vehicles {settings.OVERDUE_VEHICLE_HOURS}h, keys {settings.OVERDUE_KEY_HOURS}h"
    )
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Gate Custody Ledger shutting down...")
