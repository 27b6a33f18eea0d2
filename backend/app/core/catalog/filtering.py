# File: backend/app/core/catalog/filtering.py
# Version: v0.2.0
"""
Ancestor-preserving search over the service tree, plus the rendered view.

`visible_ids` returns every node whose name contains the term
(case-insensitive) together with all of its ancestors, so a deep match stays
reachable from its root. `prune_forest` renders only visible nodes; children of
a node are rendered when the node is expanded or sits at depth 0.

Search term and expansion set are plain arguments; this module keeps no state.

v0.2.0:
- Ancestors collected through `ServiceTree.parent_of` instead of a second traversal.
"""

from __future__ import annotations

from typing import AbstractSet, Any, Dict, FrozenSet, List, Mapping, Optional, Set

from backend.app.core.catalog.aggregate import assigned_leaf_count, is_assigned
from backend.app.core.catalog.models import Assignment, ServiceTree


def _normalize_term(term: Optional[str]) -> str:
    return (term or "").strip().lower()


def visible_ids(tree: ServiceTree, term: Optional[str]) -> Set[str]:
    """Ids that stay visible for `term`; blank term keeps everything."""
    needle = _normalize_term(term)
    if not needle:
        return set(tree.nodes)

    visible: Set[str] = set()
    for node_id, node in tree.nodes.items():
        if needle not in (node.name or "").lower():
            continue
        visible.add(node_id)
        for ancestor in tree.ancestors(node_id):
            if ancestor in visible:
                break
            visible.add(ancestor)
    return visible


def default_expanded(tree: ServiceTree) -> FrozenSet[str]:
    """Expansion set on open: every node that has children."""
    return frozenset(i for i, n in tree.nodes.items() if n.has_children)


def toggle_expanded(expanded: AbstractSet[str], node_id: str) -> FrozenSet[str]:
    if node_id in expanded:
        return frozenset(expanded - {node_id})
    return frozenset(expanded | {node_id})


def prune_forest(
    tree: ServiceTree,
    visible: AbstractSet[str],
    expanded: AbstractSet[str],
    store: Mapping[str, Assignment],
) -> List[Dict[str, Any]]:
    """
    Render the visible part of the forest as nested dicts.

    Hidden nodes are dropped entirely, not flagged.
    """
    def render(node_id: str, depth: int) -> Dict[str, Any]:
        node = tree.nodes[node_id]
        is_open = node_id in expanded or depth == 0
        assigned_leaves, total_leaves = assigned_leaf_count(tree, node_id, store)
        current = store.get(node_id)
        children = [
            render(child, depth + 1) for child in node.children if child in visible
        ] if (node.has_children and is_open) else []
        return {
            "id": node_id,
            "name": node.name,
            "code": node.code,
            "leaf": not node.has_children,
            "depth": depth,
            "assigned": is_assigned(tree, node_id, store),
            "cost": current.cost if current is not None else node.default_cost,
            "expanded": node.has_children and is_open,
            "assignedLeaves": assigned_leaves,
            "totalLeaves": total_leaves,
            "children": children,
        }

    return [render(root, 0) for root in tree.roots if root in visible]
