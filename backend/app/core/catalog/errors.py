# File: backend/app/core/catalog/errors.py
# Version: v0.1.0
"""
Exceptions raised by the branch service assignment engine and editor sessions.

Routers translate these into HTTP errors; the engine itself never swallows them.
"""

from __future__ import annotations

from typing import Optional


class UnknownServiceNodeError(KeyError):
    """A service type id that is not part of the loaded tree."""

    def __init__(self, node_id: str) -> None:
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Unknown service type: {self.node_id}"


class SessionBusyError(RuntimeError):
    """A save is in flight; edits and further saves are refused until it settles."""


class SessionClosedError(RuntimeError):
    """The session was saved or cancelled and can no longer be edited."""


class FetchFailedError(RuntimeError):
    """The service tree for a branch could not be loaded; no session is opened."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SaveFailedError(RuntimeError):
    """The upstream rejected or did not answer the replace-all call."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UpstreamError(RuntimeError):
    """Transport failure or non-2xx answer from the appointment service."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
