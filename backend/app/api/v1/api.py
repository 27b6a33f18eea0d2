# File: backend/app/api/v1/api.py
# Version: v0.2.0
"""
v1 API aggregator.

Routers included under /api:
- health
- branches (overview of assigned service counts)
- branch_sessions (service assignment editor sessions)
"""
from __future__ import annotations

from fastapi import APIRouter

from . import health as health_router
from . import branches as branches_router
from . import branch_sessions as branch_sessions_router

api_router = APIRouter()
api_router.include_router(health_router.router)
api_router.include_router(branches_router.router)
api_router.include_router(branch_sessions_router.router)
