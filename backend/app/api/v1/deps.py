# File: backend/app/api/v1/deps.py
# Version: v0.1.0
"""
Dependency providers for branch service endpoints.

Tests swap these through `app.dependency_overrides`.
"""

from __future__ import annotations

from backend.app.core.catalog.session import SessionManager, session_manager
from backend.app.services.branch_services_client import BranchServicesClient


def get_branch_client() -> BranchServicesClient:
    """Return a client for the upstream appointment service."""
    return BranchServicesClient()


def get_session_manager() -> SessionManager:
    return session_manager
