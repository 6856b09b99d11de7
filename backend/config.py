"""
Plura configuration — all environment variables in one place.

Read from environment at import time. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Database (optional: without it the bundle cache lives in memory)
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # Deployments
    DEPLOYMENTS_DIR: str = os.environ.get("DEPLOYMENTS_DIR", "deployments")
    BUILD_ENABLED: bool = os.environ.get("BUILD_ENABLED", "true").lower() == "true"
    BUILD_TIMEOUT_SECONDS: float = float(os.environ.get("BUILD_TIMEOUT_SECONDS", "600"))
    NPM_BINARY: str = os.environ.get("NPM_BINARY", "npm")
    DEPLOY_RATE_LIMIT: int = int(os.environ.get("DEPLOY_RATE_LIMIT", "30"))  # per client per hour

    # Plan gate for code export (plans themselves are managed elsewhere)
    CODE_EXPORT_ENABLED: bool = os.environ.get("CODE_EXPORT_ENABLED", "true").lower() == "true"

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    @property
    def PUBLIC_URL(self) -> str:
        url = os.environ.get("PUBLIC_URL")
        if url:
            return url.rstrip("/")
        return "http://localhost:8000" if self.ENVIRONMENT == "development" else "https://plura.app"


# Singleton instance
settings = Settings()

if settings.ENVIRONMENT == "production" and not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required in production")
if settings.BUILD_TIMEOUT_SECONDS <= 0:
    raise RuntimeError("BUILD_TIMEOUT_SECONDS must be positive")
