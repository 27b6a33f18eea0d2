# File: backend/app/api/v1/health.py
# Version: v0.2.0
"""
Healthcheck router.

Reports the service name/version and which upstream it talks to; it does not
call the upstream.
"""
from __future__ import annotations
from fastapi import APIRouter

from backend.app.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "upstream": settings.UPSTREAM_BASE_URL,
    }
