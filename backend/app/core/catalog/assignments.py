# File: backend/app/core/catalog/assignments.py
# Version: v0.2.0
"""
Assignment store and the toggle engine.

The store maps a leaf id to its Assignment and is the single source of truth
for what a branch offers. It is immutable: `toggle` and `set_cost` return a new
store and never touch the one they were given, so the session can keep the
store it loaded at open time for comparison.

Only leaf ids are ever written. Leafness is decided by the tree (a node with no
children), not by the source `is_leaf` flag.

v0.2.0:
- `normalize_cost` rejects NaN/inf and booleans.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from backend.app.core.catalog.models import Assignment, ServiceTree


class AssignmentStore(Mapping[str, Assignment]):
    """Read-only mapping leaf id -> Assignment; keeps insertion order."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Mapping[str, Assignment]] = None) -> None:
        self._entries: Dict[str, Assignment] = dict(entries or {})

    @classmethod
    def from_costs(cls, costs: Mapping[str, Any]) -> "AssignmentStore":
        """Build from a plain {leaf_id: cost} mapping (costs are normalized)."""
        return cls({k: Assignment(leaf_id=k, cost=normalize_cost(v)) for k, v in costs.items()})

    def __getitem__(self, leaf_id: str) -> Assignment:
        return self._entries[leaf_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k!r}: {v.cost!r}" for k, v in self._entries.items())
        return f"AssignmentStore({{{inner}}})"

    def costs(self) -> Dict[str, float]:
        return {k: v.cost for k, v in self._entries.items()}

    def put(self, assignment: Assignment) -> "AssignmentStore":
        entries = dict(self._entries)
        entries[assignment.leaf_id] = assignment
        return AssignmentStore(entries)

    def without(self, ids: Iterable[str]) -> "AssignmentStore":
        drop = set(ids)
        if not drop.intersection(self._entries):
            return self
        return AssignmentStore({k: v for k, v in self._entries.items() if k not in drop})


def normalize_cost(value: Any) -> float:
    """
    Coerce operator input into a finite, non-negative float.

    Anything unparseable (None, "", "abc", True, NaN) is 0.0; negatives clamp to 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(parsed):
        return 0.0
    return max(0.0, parsed)


def _set_leaf(entries: Dict[str, Assignment], tree: ServiceTree, leaf_id: str, assigned: bool) -> None:
    if assigned:
        existing = entries.get(leaf_id)
        cost = existing.cost if existing is not None else tree.nodes[leaf_id].default_cost
        entries[leaf_id] = Assignment(leaf_id=leaf_id, cost=normalize_cost(cost))
    else:
        entries.pop(leaf_id, None)


def toggle(store: AssignmentStore, tree: ServiceTree, node_id: str, assigned: bool) -> AssignmentStore:
    """
    Set `node_id` to `assigned`, cascading to every leaf below it when it is a group.

    Raises UnknownServiceNodeError for an id outside the tree.
    """
    tree.get(node_id)
    entries = dict(store.items())
    for current in tree.walk(node_id):
        if tree.nodes[current].has_children:
            # groups never carry an entry of their own
            entries.pop(current, None)
        else:
            _set_leaf(entries, tree, current, assigned)
    return AssignmentStore(entries)


def set_cost(store: AssignmentStore, leaf_id: str, cost: Any) -> AssignmentStore:
    """Update the cost of an assigned leaf; returns `store` unchanged otherwise."""
    current = store.get(leaf_id)
    if current is None:
        return store
    return store.put(Assignment(leaf_id=leaf_id, cost=normalize_cost(cost)))
