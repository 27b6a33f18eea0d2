# File: backend/app/core/catalog/session.py
# Version: v0.4.0
"""
Branch service editor sessions.

A session is opened for one branch: the service tree is fetched once, the
initial AssignmentStore is seeded from it, and all edits (toggle, cost, search,
expand) happen locally. `save` sends the whole store as a replace-all payload.

- Only one save may be in flight; while it is, edits and saves raise SessionBusyError.
- A failed save leaves the store as it was so the operator can retry.
- A successful save or a cancel closes the session; the manager forgets it.

v0.3.0:
- Idle sessions are purged lazily by SessionManager.

v0.4.0:
- A branch tree that cannot be built (node without id, non-object node) fails
  `open` with FetchFailedError instead of escaping as a bare exception.
"""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Set

from backend.app.core.catalog.aggregate import total_cost
from backend.app.core.catalog.assignments import AssignmentStore, set_cost, toggle
from backend.app.core.catalog.errors import (
    FetchFailedError,
    SaveFailedError,
    SessionBusyError,
    SessionClosedError,
    UpstreamError,
)
from backend.app.core.catalog.filtering import default_expanded, prune_forest, toggle_expanded, visible_ids
from backend.app.core.catalog.models import ServiceTree
from backend.app.core.catalog.payload import build_payload, diff_stores
from backend.app.core.catalog.tree_builder import build_tree, flatten_forest, initial_store_from_forest
from backend.app.core.config import settings

log = logging.getLogger(__name__)

MALFORMED_TREE = "Malformed service tree"


@dataclass
class BranchServiceSession:
    session_id:   str
    branch_id:    str
    tree:         ServiceTree
    initial:      AssignmentStore
    store:        AssignmentStore
    search_term:  str            = ""
    expanded_ids: FrozenSet[str] = frozenset()
    saving:       bool           = False
    closed:       bool           = False
    touched_at:   float          = field(default_factory=time.monotonic)

    @classmethod
    def from_response(cls, session_id: str, branch_id: str, data: Dict[str, Any]) -> "BranchServiceSession":
        """Build tree and initial store from the upstream `{serviceTree: [...]}` document."""
        forest = data.get("serviceTree") or []
        tree = build_tree(flatten_forest(forest))
        initial = initial_store_from_forest(tree, forest)
        return cls(
            session_id=session_id,
            branch_id=branch_id,
            tree=tree,
            initial=initial,
            store=initial,
            expanded_ids=default_expanded(tree),
        )

    def _touch(self) -> None:
        self.touched_at = time.monotonic()

    def _ensure_editable(self) -> None:
        if self.closed:
            raise SessionClosedError(f"Session {self.session_id} is closed")
        if self.saving:
            raise SessionBusyError(f"Session {self.session_id} is saving")

    # ---------- edits ----------
    def toggle(self, node_id: str, assigned: bool) -> AssignmentStore:
        self._ensure_editable()
        self.store = toggle(self.store, self.tree, node_id, assigned)
        self._touch()
        return self.store

    def set_cost(self, leaf_id: str, cost: Any) -> AssignmentStore:
        self._ensure_editable()
        self.store = set_cost(self.store, leaf_id, cost)
        self._touch()
        return self.store

    def set_search(self, term: Optional[str]) -> None:
        self.search_term = term or ""
        self._touch()

    def toggle_expand(self, node_id: str) -> None:
        self.tree.get(node_id)
        self.expanded_ids = toggle_expanded(self.expanded_ids, node_id)
        self._touch()

    # ---------- reads ----------
    def visible(self) -> Set[str]:
        return visible_ids(self.tree, self.search_term)

    @property
    def dirty(self) -> bool:
        return not diff_stores(self.initial, self.store).is_empty

    def summary(self) -> Dict[str, Any]:
        return {
            "selectedCount": len(self.store),
            "totalCost": total_cost(self.store),
            "dirty": self.dirty,
            "saving": self.saving,
        }

    def payload(self) -> Dict[str, Any]:
        return build_payload(self.store)

    def view(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "branchId": self.branch_id,
            "search": self.search_term,
            "tree": prune_forest(self.tree, self.visible(), self.expanded_ids, self.store),
            "summary": self.summary(),
        }

    # ---------- lifecycle ----------
    async def save(self, client) -> Dict[str, Any]:
        """
        Send the full store to `client.replace_assignments`.

        An empty store is a valid save (clears the branch).
        """
        self._ensure_editable()
        payload = self.payload()
        self.saving = True
        try:
            await client.replace_assignments(self.branch_id, payload)
        except UpstreamError as exc:
            log.warning("Save failed for branch %s (session %s): %s", self.branch_id, self.session_id, exc.message)
            raise SaveFailedError(exc.message, status_code=exc.status_code) from exc
        finally:
            self.saving = False
        self.closed = True
        log.info("Session %s saved %d assignment(s) for branch %s", self.session_id, len(self.store), self.branch_id)
        return payload

    def cancel(self) -> None:
        self.closed = True


class SessionManager:
    """In-memory registry of open editor sessions."""

    def __init__(self, idle_ttl_seconds: Optional[int] = None) -> None:
        self._sessions: Dict[str, BranchServiceSession] = {}
        self.idle_ttl_seconds = settings.SESSION_IDLE_TTL_SECONDS if idle_ttl_seconds is None else idle_ttl_seconds

    def __len__(self) -> int:
        return len(self._sessions)

    def _purge_idle(self) -> None:
        if self.idle_ttl_seconds <= 0:
            return
        cutoff = time.monotonic() - self.idle_ttl_seconds
        for sid in [s for s, sess in self._sessions.items() if sess.touched_at < cutoff and not sess.saving]:
            log.info("Discarding idle session %s", sid)
            self._sessions.pop(sid, None)

    async def open(self, branch_id: str, client) -> BranchServiceSession:
        """Fetch the branch tree and register a new session; nothing is kept on failure."""
        self._purge_idle()
        try:
            data = await client.fetch_tree(branch_id)
        except UpstreamError as exc:
            raise FetchFailedError(exc.message, status_code=exc.status_code) from exc

        try:
            session = BranchServiceSession.from_response(uuid.uuid4().hex[:12], branch_id, data)
        except (ValueError, TypeError, AttributeError) as exc:
            log.error("Malformed service tree for branch %s: %s", branch_id, exc)
            raise FetchFailedError(f"{MALFORMED_TREE}: {exc}") from exc
        self._sessions[session.session_id] = session
        log.info(
            "Opened session %s for branch %s (%d service types, %d assigned)",
            session.session_id, branch_id, len(session.tree), len(session.initial),
        )
        return session

    def get(self, session_id: str) -> Optional[BranchServiceSession]:
        self._purge_idle()
        session = self._sessions.get(session_id)
        if session is not None and session.closed:
            self._sessions.pop(session_id, None)
            return None
        return session

    def discard(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.cancel()
        return True


session_manager = SessionManager()
