"""Main FastAPI application module.

This module initializes the FastAPI application, registers all route
handlers and error handlers, and starts the hourly submission notification
loop.
"""

import asyncio
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.logging_config import setup_logging
from config import (
    ADMIN_EMAIL,
    ADMIN_FIRST_NAME,
    ADMIN_LAST_NAME,
    ADMIN_PASSWORD,
    ADMIN_STAFF_ID,
    API_HOST,
    API_PORT,
    CORS_ALLOWED_ORIGINS,
    NOTIFICATION_JOB_ENABLED,
)
from api.routes import (
    assignment,
    auth,
    invite,
    lecturer,
    password,
    student,
    submission,
    upload,
)
from core.database import SessionLocal, init_db
from core.dependencies import get_mailer
from core.exceptions import HttpError, MailDeliveryError, StorageError
from utils.notification_job import run_notification_loop
from utils.user_manager import UserManager

# Setup logging
setup_logging()

logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title="Assignment Portal API",
    description="Backend API for publishing assignments and collecting submissions.",
    version="1.0.0",
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

# Register route handlers
app.include_router(auth.router)
app.include_router(lecturer.router)
app.include_router(student.router)
app.include_router(assignment.router)
app.include_router(invite.router)
app.include_router(submission.router)
app.include_router(upload.router)
app.include_router(password.router)


@app.exception_handler(HttpError)
def http_error_handler(request: Request, exc: HttpError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "errorCode": exc.error_code.value},
    )


@app.exception_handler(MailDeliveryError)
@app.exception_handler(StorageError)
def upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Upstream service failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"message": "An upstream service failed, please try again later"},
    )


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error"},
    )


@app.on_event("startup")
async def startup_tasks() -> None:
    """Create tables, seed the admin account and start the notification loop."""
    init_db()
    _seed_admin()
    if NOTIFICATION_JOB_ENABLED:
        app.state.notification_task = asyncio.create_task(run_notification_loop())


@app.on_event("shutdown")
async def shutdown_tasks() -> None:
    task = getattr(app.state, "notification_task", None)
    if task is not None:
        task.cancel()


def _seed_admin() -> None:
    """Create the configured admin account if it does not exist yet."""
    if not ADMIN_EMAIL or not ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin seed")
        return
    with SessionLocal() as db:
        UserManager(db, get_mailer()).ensure_admin(
            email=ADMIN_EMAIL,
            password=ADMIN_PASSWORD,
            staff_id=ADMIN_STAFF_ID,
            first_name=ADMIN_FIRST_NAME,
            last_name=ADMIN_LAST_NAME,
        )


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links.

    Returns:
        Dictionary with API information and documentation links.
    """
    return {
        "name": "Assignment Portal API",
        "version": "1.0.0",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok".
    """
    return {"status": "ok"}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Assignment Portal API on http://%s:%s", API_HOST, API_PORT)
    logger.info("API docs: http://%s:%s/docs", API_HOST, API_PORT)
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
