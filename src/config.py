"""Configuration module for the Assignment Portal API.

This module provides centralized configuration management, including directory
paths, API server settings, database, mail, object storage and scheduler
settings. All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# Email templates directory name
EMAIL_TEMPLATE_DIR_NAME = "templates"
EMAIL_TEMPLATE_DIR = ROOT_DIR / "src" / EMAIL_TEMPLATE_DIR_NAME

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# Frontend origin used to build links inside emails
FRONTEND_ORIGIN: str = os.getenv("FRONTEND_ORIGIN", "")

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/assignment_portal.db"
)

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24))
)  # 1 day
RESET_TOKEN_EXPIRE_MINUTES: int = 60

# Minimum accepted length for a new password
MIN_PASSWORD_LENGTH: int = 8

# Admin account created at startup when both values are set
ADMIN_EMAIL: Optional[str] = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD: Optional[str] = os.getenv("ADMIN_PASSWORD")
ADMIN_STAFF_ID: str = os.getenv("ADMIN_STAFF_ID", "ADM-00001")
ADMIN_FIRST_NAME: str = os.getenv("ADMIN_FIRST_NAME", "Portal")
ADMIN_LAST_NAME: str = os.getenv("ADMIN_LAST_NAME", "Admin")

# --- Mail Configuration ---

SMTP_HOST: str = os.getenv("SMTP_HOST", "localhost")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME: Optional[str] = os.getenv("SMTP_USERNAME") or None
SMTP_PASSWORD: Optional[str] = os.getenv("SMTP_PASSWORD") or None
SMTP_USE_SSL: bool = os.getenv("SMTP_USE_SSL", "false").lower() == "true"
SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
SMTP_TIMEOUT_SECONDS: int = 30

# Sender address for every outgoing email
ADMIN_MAIL: str = os.getenv("ADMIN_MAIL", "no-reply@localhost")

# --- Object Storage Configuration ---

AWS_REGION: Optional[str] = os.getenv("AWS_REGION") or None
AWS_ACCESS_KEY_ID: Optional[str] = os.getenv("AWS_ACCESS_KEY_ID") or None
AWS_SECRET_ACCESS_KEY: Optional[str] = os.getenv("AWS_SECRET_ACCESS_KEY") or None
BUCKET_NAME: str = os.getenv("BUCKET_NAME", "")

# Custom endpoint for S3-compatible services (MinIO, R2, ...)
S3_ENDPOINT_URL: Optional[str] = os.getenv("S3_ENDPOINT_URL") or None
# Public base URL for uploaded objects; defaults to the AWS virtual-host URL
S3_PUBLIC_BASE_URL: Optional[str] = os.getenv("S3_PUBLIC_BASE_URL") or None

# --- Scheduler Configuration ---

# Submission notifications are reconciled once per hour
NOTIFICATION_INTERVAL_SECONDS: int = 60 * 60

NOTIFICATION_JOB_ENABLED: bool = (
    os.getenv("NOTIFICATION_JOB_ENABLED", "true").lower() == "true"
)

# --- Pagination ---

# Page size for user listings
USER_PAGE_SIZE: int = 100
