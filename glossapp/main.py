# glossapp/main.py
"""
FastAPI application entry point.
Includes CORS, request timing, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from glossapp.routers import records, pricing, types, vehicles, washers, companies, discounts, health
from glossapp.database import create_tables
from glossapp.config import settings
from glossapp.exceptions import GlossAppError
from glossapp.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="GlossApp Car Wash API",
    description="Wash records, pricing and back-office registry for the car wash.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (admin app and staff tablets) ──────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
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


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(GlossAppError)
async def glossapp_exception_handler(request: Request, exc: GlossAppError):
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    body = {"error": "InvalidInput", "message": first.get("msg", "Invalid input.")}
    if loc:
        body["field"] = loc[-1]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal", "message": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(records.router,   prefix="/api", tags=["Records"])
app.include_router(pricing.router,   prefix="/api", tags=["Pricing"])
app.include_router(types.router,     prefix="/api", tags=["Types"])
app.include_router(vehicles.router,  prefix="/api", tags=["Vehicles"])
app.include_router(washers.router,   prefix="/api", tags=["Washers"])
app.include_router(companies.router, prefix="/api", tags=["Companies"])
app.include_router(discounts.router, prefix="/api", tags=["Discounts"])
app.include_router(health.router,    prefix="/api", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("GlossApp backend starting up...")
    create_tables()
    logger.info("Database tables ready")
    if not settings.MASTER_PIN:
        logger.warning("MASTER_PIN is not set: edits and deletes that need it will be rejected")
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("GlossApp backend shutting down...")
