# File: backend/app/api/v1/branch_sessions.py
# Version: v0.3.0
"""
Branch service editor session API.

Endpoints
---------
POST   /branch-sessions                               Open a session (fetches the branch tree)
GET    /branch-sessions/{sid}?search=                  Current view (optionally updates the search term)
POST   /branch-sessions/{sid}/toggle                   Toggle a leaf or a whole group
PUT    /branch-sessions/{sid}/costs/{serviceTypeId}    Edit the cost of an assigned leaf
POST   /branch-sessions/{sid}/expanded/{serviceTypeId} Expand/collapse a group
GET    /branch-sessions/{sid}/payload                  Preview the replace-all payload
POST   /branch-sessions/{sid}/save                     Persist (single in-flight save)
DELETE /branch-sessions/{sid}                          Cancel and discard

Upstream failures come back as 502 with the upstream message in `detail`.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from backend.app.api.v1.deps import get_branch_client, get_session_manager
from backend.app.core.catalog.errors import (
    FetchFailedError,
    SaveFailedError,
    SessionBusyError,
    SessionClosedError,
    UnknownServiceNodeError,
)
from backend.app.core.catalog.session import BranchServiceSession, SessionManager
from backend.app.schemas.branch_services import (
    AssignmentSetPayload,
    CostUpdateRequest,
    OpenSessionRequest,
    SaveResponse,
    SessionView,
    ToggleRequest,
)
from backend.app.services.branch_services_client import BranchServicesClient

router = APIRouter(prefix="/branch-sessions", tags=["branch-sessions"])


def _session_or_404(session_id: str, manager: SessionManager) -> BranchServiceSession:
    session = manager.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _edit_error(exc: Exception) -> HTTPException:
    if isinstance(exc, UnknownServiceNodeError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, SessionBusyError):
        return HTTPException(status_code=409, detail="A save is in progress for this session")
    return HTTPException(status_code=409, detail="Session is closed")


@router.post("", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def open_session(
    payload: OpenSessionRequest,
    client: BranchServicesClient = Depends(get_branch_client),
    manager: SessionManager = Depends(get_session_manager),
):
    try:
        session = await manager.open(payload.branchId, client)
    except FetchFailedError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from exc
    return session.view()


@router.get("/{session_id}", response_model=SessionView)
def read_session(
    session_id: str,
    search: Optional[str] = Query(None, description="Case-insensitive name filter; keeps ancestors of matches"),
    manager: SessionManager = Depends(get_session_manager),
):
    session = _session_or_404(session_id, manager)
    if search is not None:
        session.set_search(search)
    return session.view()


@router.post("/{session_id}/toggle", response_model=SessionView)
def toggle_node(
    session_id: str,
    payload: ToggleRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    session = _session_or_404(session_id, manager)
    try:
        session.toggle(payload.serviceTypeId, payload.assigned)
    except (UnknownServiceNodeError, SessionBusyError, SessionClosedError) as exc:
        raise _edit_error(exc) from exc
    return session.view()


@router.put("/{session_id}/costs/{service_type_id}", response_model=SessionView)
def update_cost(
    session_id: str,
    service_type_id: str,
    payload: CostUpdateRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    session = _session_or_404(session_id, manager)
    try:
        session.set_cost(service_type_id, payload.cost)
    except (SessionBusyError, SessionClosedError) as exc:
        raise _edit_error(exc) from exc
    return session.view()


@router.post("/{session_id}/expanded/{service_type_id}", response_model=SessionView)
def toggle_expanded(
    session_id: str,
    service_type_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    session = _session_or_404(session_id, manager)
    try:
        session.toggle_expand(service_type_id)
    except UnknownServiceNodeError as exc:
        raise _edit_error(exc) from exc
    return session.view()


@router.get("/{session_id}/payload", response_model=AssignmentSetPayload)
def preview_payload(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    return _session_or_404(session_id, manager).payload()


@router.post("/{session_id}/save", response_model=SaveResponse)
async def save_session(
    session_id: str,
    client: BranchServicesClient = Depends(get_branch_client),
    manager: SessionManager = Depends(get_session_manager),
):
    session = _session_or_404(session_id, manager)
    try:
        payload = await session.save(client)
    except (SessionBusyError, SessionClosedError) as exc:
        raise _edit_error(exc) from exc
    except SaveFailedError as exc:
        # local edits stay in the session for a retry
        raise HTTPException(status_code=502, detail=exc.message) from exc
    manager.discard(session_id)
    return SaveResponse(assignments=len(payload["assignments"]))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    if not manager.discard(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
