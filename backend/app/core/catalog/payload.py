# File: backend/app/core/catalog/payload.py
# Version: v0.1.0
"""
Reduce an AssignmentStore to the replace-all payload, and compare stores.

The payload is always the complete desired assignment set for the branch; the
upstream overwrites whatever it had. `diff_stores` only tells the session
whether anything changed since open and never shapes the payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple

from backend.app.core.catalog.models import Assignment


def build_payload(store: Mapping[str, Assignment]) -> Dict[str, List[Dict[str, Any]]]:
    """One `{serviceTypeId, cost}` entry per store key, in store order."""
    return {
        "assignments": [
            {"serviceTypeId": leaf_id, "cost": float(assignment.cost)}
            for leaf_id, assignment in store.items()
        ]
    }


@dataclass(frozen=True)
class AssignmentDiff:
    added:        Tuple[str, ...] = field(default_factory=tuple)
    removed:      Tuple[str, ...] = field(default_factory=tuple)
    cost_changed: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.cost_changed)


def diff_stores(initial: Mapping[str, Assignment], current: Mapping[str, Assignment]) -> AssignmentDiff:
    added = tuple(k for k in current if k not in initial)
    removed = tuple(k for k in initial if k not in current)
    cost_changed = tuple(
        k for k in current if k in initial and current[k].cost != initial[k].cost
    )
    return AssignmentDiff(added=added, removed=removed, cost_changed=cost_changed)
