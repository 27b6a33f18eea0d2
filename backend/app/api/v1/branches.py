# File: backend/app/api/v1/branches.py
# Version: v0.2.0
"""Branch overview: how many services each branch currently offers.

Endpoints:
- GET /branches/service-summaries -> [BranchSummary]
"""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import ValidationError

from backend.app.api.v1.deps import get_branch_client
from backend.app.core.catalog.errors import UpstreamError
from backend.app.schemas.branch_services import BranchSummary
from backend.app.services.branch_services_client import BranchServicesClient

log = logging.getLogger(__name__)

router = APIRouter(prefix="/branches", tags=["branches"])


@router.get("/service-summaries", response_model=List[BranchSummary])
async def list_service_summaries(
    response: Response,
    client: BranchServicesClient = Depends(get_branch_client),
):
    try:
        rows = await client.fetch_summaries()
    except UpstreamError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from exc

    seen = set()
    items: List[BranchSummary] = []
    for row in rows:
        branch_id = row.get("organizationBranchId") if isinstance(row, dict) else None
        if not branch_id or branch_id in seen:
            continue
        try:
            item = BranchSummary.model_validate(row)
        except ValidationError as exc:
            log.warning("Skipping malformed summary for branch %s: %s", branch_id, exc)
            continue
        seen.add(branch_id)
        items.append(item)

    # Counts change on every save
    response.headers["Cache-Control"] = "no-store"
    return items
