# File: backend/app/core/catalog/tree_builder.py
# Version: v0.3.0
"""
Build a ServiceTree from a flat list of service-type records.

Rules:
- Every input id ends up in the tree exactly once (first occurrence wins).
- A record whose parent id is missing, unknown or equal to its own id becomes a root.
- Records caught in a parent cycle are re-rooted: the first one of the cycle in
  input order is promoted to root.
- Siblings are ordered by `display_order` when present, otherwise input order.

Also converts the nested upstream response (`serviceTree`) into flat records and
seeds the initial AssignmentStore from its `assigned` flags.

v0.3.0:
- Cycle re-rooting, so unreachable records no longer disappear from the tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from backend.app.core.catalog.assignments import AssignmentStore, normalize_cost
from backend.app.core.catalog.models import Assignment, ServiceNode, ServiceTree

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceTypeRecord:
    """Flat service-type row as exported by the catalog (parent-pointer form)."""
    id: str
    parent_id: Optional[str] = None
    name: str = ""
    code: str = ""
    is_leaf: bool = False
    default_cost: float = 0.0
    display_order: Optional[int] = None


RecordLike = Union[ServiceTypeRecord, Mapping[str, Any]]


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def record_from_dict(data: Mapping[str, Any]) -> ServiceTypeRecord:
    """Accept both the catalog export keys (camelCase) and snake_case keys."""
    raw_id = _first(data, "serviceTypeId", "id")
    if raw_id is None or str(raw_id).strip() == "":
        raise ValueError("Service type record is missing its id.")

    raw_parent = _first(data, "parentServiceTypeId", "parentId", "parent_id")
    parent_id = str(raw_parent) if raw_parent not in (None, "") else None

    return ServiceTypeRecord(
        id=str(raw_id),
        parent_id=parent_id,
        name=str(_first(data, "name") or ""),
        code=str(_first(data, "code") or ""),
        is_leaf=bool(_first(data, "isLeaf", "leaf", "is_leaf") or False),
        default_cost=normalize_cost(_first(data, "defaultCost", "default_cost", "cost")),
        display_order=_as_int(_first(data, "displayOrder", "display_order")),
    )


def _coerce(records: Iterable[RecordLike]) -> List[ServiceTypeRecord]:
    return [r if isinstance(r, ServiceTypeRecord) else record_from_dict(r) for r in records]


def _sibling_key(position: Dict[str, int], nodes: Dict[str, ServiceNode]):
    def key(node_id: str) -> Tuple[int, int, int]:
        order = nodes[node_id].display_order
        if order is None:
            return (1, 0, position[node_id])
        return (0, order, position[node_id])
    return key


def build_tree(records: Iterable[RecordLike]) -> ServiceTree:
    """
    Turn flat parent-pointer records into a rooted forest.

    Never raises on inconsistent data; anomalies are logged and repaired.
    """
    rows = _coerce(records)

    tree = ServiceTree()
    position: Dict[str, int] = {}
    declared_parent: Dict[str, Optional[str]] = {}
    for idx, rec in enumerate(rows):
        if rec.id in tree.nodes:
            log.warning("Duplicate service type id %s ignored", rec.id)
            continue
        tree.nodes[rec.id] = ServiceNode(
            id=rec.id,
            name=rec.name,
            code=rec.code,
            is_leaf=rec.is_leaf,
            default_cost=rec.default_cost,
            display_order=rec.display_order,
        )
        position[rec.id] = idx
        declared_parent[rec.id] = rec.parent_id

    for node_id in tree.nodes:
        parent = declared_parent[node_id]
        if parent is None or parent == node_id:
            continue
        if parent not in tree.nodes:
            log.warning("Service type %s references unknown parent %s; promoted to root", node_id, parent)
            continue
        tree.parent_of[node_id] = parent
        tree.nodes[parent].children.append(node_id)

    tree.roots = [i for i in tree.nodes if i not in tree.parent_of]

    # Cycles: nothing in them is reachable from a root.
    reached = set()
    for root in tree.roots:
        reached.update(tree.walk(root))
    for node_id in tree.nodes:
        if node_id in reached:
            continue
        path: List[str] = []
        current = node_id
        while current not in path:
            path.append(current)
            current = tree.parent_of[current]
        victim = min(path[path.index(current):], key=position.__getitem__)
        parent = tree.parent_of.pop(victim)
        tree.nodes[parent].children.remove(victim)
        tree.roots.append(victim)
        reached.update(tree.walk(victim))
        log.warning("Parent cycle through service type %s; promoted to root", victim)

    key = _sibling_key(position, tree.nodes)
    tree.roots.sort(key=key)
    for node in tree.nodes.values():
        node.children.sort(key=key)

    mismatched = [n.id for n in tree.nodes.values() if n.is_leaf == n.has_children]
    if mismatched:
        log.warning(
            "Leaf flag disagrees with children for %d service type(s): %s",
            len(mismatched),
            ", ".join(mismatched[:10]),
        )
    return tree


def flatten_forest(forest: Sequence[Mapping[str, Any]]) -> List[ServiceTypeRecord]:
    """
    Flatten the nested upstream tree into records, parent taken from nesting.

    Order is pre-order, so input order among siblings is preserved.
    """
    out: List[ServiceTypeRecord] = []
    stack: List[Tuple[Mapping[str, Any], Optional[str]]] = [(n, None) for n in reversed(forest or [])]
    while stack:
        data, parent = stack.pop()
        rec = replace(record_from_dict(data), parent_id=parent)
        out.append(rec)
        children = data.get("children") or []
        stack.extend((child, rec.id) for child in reversed(children))
    return out


def initial_store_from_forest(tree: ServiceTree, forest: Sequence[Mapping[str, Any]]) -> AssignmentStore:
    """
    Seed the store from the upstream `assigned`/`cost` fields.

    Only leaves of `tree` qualify; an `assigned` group is ignored.
    """
    entries: Dict[str, Assignment] = {}
    stack: List[Mapping[str, Any]] = list(reversed(forest or []))
    while stack:
        data = stack.pop()
        node_id = str(_first(data, "serviceTypeId", "id"))
        if data.get("assigned") is True and node_id in tree and tree.is_leaf(node_id):
            entries[node_id] = Assignment(leaf_id=node_id, cost=normalize_cost(data.get("cost")))
        elif data.get("assigned") is True and node_id in tree:
            log.warning("Group service type %s marked assigned upstream; ignored", node_id)
        stack.extend(reversed(data.get("children") or []))
    return AssignmentStore(entries)
