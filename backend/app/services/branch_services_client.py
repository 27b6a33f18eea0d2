# File: backend/app/services/branch_services_client.py
# Version: v0.2.0
"""
HTTP client for the appointment service's branch service-type endpoints.

Endpoints (relative to BRANCH_SERVICE_TYPES_PATH):
- GET  ""             -> branch summaries (assignedServiceCount per branch)
- GET  "/{branchId}"  -> { "serviceTree": [ nested nodes with assigned/cost ] }
- PUT  "/{branchId}"  -> replace the branch's whole assignment set

Every failure (transport error or non-2xx) surfaces as UpstreamError carrying
the server's `message` when it sent one.

v0.2.0:
- One short-lived httpx.AsyncClient per call; `transport` is injectable for tests.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from backend.app.core.catalog.errors import UpstreamError
from backend.app.core.config import settings

log = logging.getLogger(__name__)

LOAD_FAILED = "Failed to load branch services"
SAVE_FAILED = "Failed to save branch services"


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


class BranchServicesClient:
    """Async client; safe to share, holds no connection between calls."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.UPSTREAM_BASE_URL).rstrip("/")
        self.token = settings.UPSTREAM_TOKEN if token is None else token
        self.timeout = settings.UPSTREAM_TIMEOUT_SECONDS if timeout is None else timeout
        self.path = "/" + (path or settings.BRANCH_SERVICE_TYPES_PATH).strip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    def _branch_url(self, branch_id: str) -> str:
        return f"{self.path}/{quote(str(branch_id), safe='')}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        fallback_message: str,
        json: Any = None,
    ) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            log.error("%s %s failed: %s", method, url, exc)
            raise UpstreamError(fallback_message) from exc

        if response.is_error:
            message = _server_message(response) or fallback_message
            log.error("%s %s -> %d: %s", method, url, response.status_code, message)
            raise UpstreamError(message, status_code=response.status_code)
        return response

    async def fetch_summaries(self) -> List[Dict[str, Any]]:
        response = await self._request("GET", self.path, fallback_message=LOAD_FAILED)
        data = response.json()
        return data if isinstance(data, list) else []

    async def fetch_tree(self, branch_id: str) -> Dict[str, Any]:
        """Return the branch's `{serviceTree: [...]}` document (empty tree when absent)."""
        response = await self._request("GET", self._branch_url(branch_id), fallback_message=LOAD_FAILED)
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(LOAD_FAILED, status_code=response.status_code) from exc
        if not isinstance(data, dict):
            data = {}
        tree = data.get("serviceTree")
        data["serviceTree"] = tree if isinstance(tree, list) else []
        return data

    async def replace_assignments(self, branch_id: str, payload: Dict[str, Any]) -> None:
        """Full replacement: the upstream keeps exactly `payload["assignments"]`."""
        await self._request("PUT", self._branch_url(branch_id), json=payload, fallback_message=SAVE_FAILED)
        log.info("Replaced %d assignment(s) for branch %s", len(payload.get("assignments", [])), branch_id)
