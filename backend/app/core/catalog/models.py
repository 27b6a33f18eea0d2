# File: backend/app/core/catalog/models.py
# Version: v0.2.0
"""
Shared dataclasses for the service catalog tree and branch assignments.

The tree is kept as an arena: every node lives in `ServiceTree.nodes` keyed by
id, `children` holds child ids and `parent_of` maps a child id to its parent id.
Nothing holds a reference back to a parent object.

v0.2.0:
- `ServiceTree.leaf_ids_under` walks iteratively (deep catalogs hit the recursion limit).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from backend.app.core.catalog.errors import UnknownServiceNodeError


@dataclass
class ServiceNode:
    """
    One service type in the catalog tree.
    """
    id:            str
    name:          str                = ""
    code:          str                = ""
    is_leaf:       bool               = False   # flag as sent by the source; traversal uses `children`
    default_cost:  float              = 0.0     # pre-fills an assignment on first selection
    display_order: Optional[int]      = None
    children:      List[str]          = field(default_factory=list)  # child ids, in sibling order

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0


@dataclass(frozen=True)
class Assignment:
    """A leaf service offered by a branch at a given cost."""
    leaf_id: str
    cost:    float = 0.0


@dataclass
class ServiceTree:
    """
    Rooted forest of ServiceNode, indexed by id.
    """
    nodes:     Dict[str, ServiceNode] = field(default_factory=dict)
    roots:     List[str]              = field(default_factory=list)
    parent_of: Dict[str, str]         = field(default_factory=dict)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, node_id: str) -> ServiceNode:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise UnknownServiceNodeError(node_id) from None

    def is_leaf(self, node_id: str) -> bool:
        """Leafness for traversal purposes: no children, regardless of the source flag."""
        return not self.get(node_id).has_children

    def ancestors(self, node_id: str) -> List[str]:
        """Ids from the direct parent up to the root."""
        out: List[str] = []
        current = self.parent_of.get(node_id)
        while current is not None:
            out.append(current)
            current = self.parent_of.get(current)
        return out

    def walk(self, node_id: Optional[str] = None) -> Iterator[str]:
        """Pre-order ids of the subtree at `node_id`, or of the whole forest."""
        stack = [node_id] if node_id is not None else list(reversed(self.roots))
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.nodes[current].children))

    def leaf_ids_under(self, node_id: str) -> List[str]:
        """Leaf descendants of `node_id` (the node itself when it is a leaf)."""
        self.get(node_id)
        return [i for i in self.walk(node_id) if not self.nodes[i].has_children]
