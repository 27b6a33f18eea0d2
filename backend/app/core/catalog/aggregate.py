# File: backend/app/core/catalog/aggregate.py
# Version: v0.1.0
"""
Derived selection state for tree nodes.

Nothing here is cached: every value is recomputed from (tree, store).

Note: a group reads as assigned only when *all* of its leaves are assigned. A
group with some leaves assigned reads exactly like one with none assigned.
`assigned_leaf_count` is provided for display only and does not change that.
"""

from __future__ import annotations

from typing import Mapping, Tuple

from backend.app.core.catalog.models import Assignment, ServiceTree


def is_assigned(tree: ServiceTree, node_id: str, store: Mapping[str, Assignment]) -> bool:
    """Leaf: present in the store. Group: every leaf descendant present (and at least one)."""
    if tree.is_leaf(node_id):
        return node_id in store
    leaves = tree.leaf_ids_under(node_id)
    return bool(leaves) and all(leaf in store for leaf in leaves)


def assigned_leaf_count(tree: ServiceTree, node_id: str, store: Mapping[str, Assignment]) -> Tuple[int, int]:
    """(assigned, total) leaf descendants of `node_id`."""
    leaves = tree.leaf_ids_under(node_id)
    return sum(1 for leaf in leaves if leaf in store), len(leaves)


def total_cost(store: Mapping[str, Assignment]) -> float:
    """Sum of assigned costs (informational)."""
    return float(sum(a.cost for a in store.values()))
