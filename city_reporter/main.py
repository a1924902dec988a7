"""
City Reporter - FastAPI Application Entry Point

Citizens report municipal issues (photo, description, location) and the
selected regional offices are emailed. Staff admins then track each report
through a resolution workflow, and the public can comment on reports.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from city_reporter.config.firebase import close_firestore, initialize_firestore
from city_reporter.core.exceptions import CityReporterError
from city_reporter.core.settings import settings
from city_reporter.routes import (
    admin,
    health,
    offices,
    public_comments,
    reports,
    resolution,
    seed,
    statistics,
    users,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Municipal issue reporting with office notification and admin resolution tracking",
    debug=settings.DEBUG
)


@app.exception_handler(CityReporterError)
async def city_reporter_error_handler(request: Request, exc: CityReporterError):
    """Render domain errors as {"success": false, "error": kind, "message": ...}."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log the full traceback; callers only see a generic message."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "internal_error", "message": "Internal server error"}
    )


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Request validation failed on {request.method} {request.url.path}: {exc.errors()}")
    fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "validation_error", "message": f"Invalid request: {fields}"}
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.
    Currently: Firebase app (Firestore + Storage)
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        initialize_firestore()
    except RuntimeError as e:
        logger.warning(f"Firestore initialization failed: {e}")
        logger.warning("The app will start but database operations will fail.")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup on application shutdown.
    """
    logger.info(f"Shutting down {settings.APP_NAME}")
    close_firestore()


# Include routers
app.include_router(health.router)
app.include_router(users.router)
app.include_router(admin.router)
app.include_router(offices.router)
app.include_router(reports.router)
app.include_router(resolution.router)
app.include_router(public_comments.router)
app.include_router(statistics.router)
app.include_router(seed.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "submit": "POST /submit-report",
            "reports": "GET /reports",
            "nearby": "GET /reports/nearby?latitude=..&longitude=..",
            "statistics": "GET /statistics/location",
        }
    }
