# File: backend/app/cli/service_tree_cli.py
# Version: v0.2.0
"""
CLI: inspect a service-type export and preview branch assignments offline.

Usage
-----
python -m backend.app.cli.service_tree_cli \
  --records service_types.json \
  [--assigned assigned.json] \
  [--toggle GENERAL] [--toggle LAB:off] \
  [--cost LAB=25] \
  [--search x-ray] [--payload]

Notes
-----
- --records accepts:
    A) [ {id, parentId, name, code, isLeaf, defaultCost, displayOrder}, ... ]  (flat export)
    B) { "serviceTypes": [ ...flat... ] }
    C) { "serviceTree": [ ...nested, with assigned/cost... ] }           (branch tree response)
- --assigned accepts { "<leafId>": cost, ... } or [ {serviceTypeId, cost}, ... ]
  and replaces whatever assignments shape C carried.
- Toggles and costs are applied in the order given.
- Exit code 2 when an input file cannot be read or parsed or a --cost lacks "=",
  1 for an unknown id.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from backend.app.core.catalog.aggregate import total_cost
from backend.app.core.catalog.assignments import AssignmentStore, set_cost, toggle
from backend.app.core.catalog.errors import UnknownServiceNodeError
from backend.app.core.catalog.filtering import default_expanded, prune_forest, visible_ids
from backend.app.core.catalog.models import ServiceTree
from backend.app.core.catalog.payload import build_payload
from backend.app.core.catalog.tree_builder import build_tree, flatten_forest, initial_store_from_forest

log = logging.getLogger("service_tree_cli")


# ---------- IO helpers ----------

def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_records(path: Path) -> Tuple[ServiceTree, AssignmentStore]:
    """Return (tree, store seeded from the file when it is a branch tree response)."""
    data = _read_json(path)
    if isinstance(data, dict) and "serviceTree" in data:
        forest = data.get("serviceTree") or []
        tree = build_tree(flatten_forest(forest))
        return tree, initial_store_from_forest(tree, forest)
    if isinstance(data, dict):
        data = data.get("serviceTypes") or []
    if not isinstance(data, list):
        raise ValueError(f"Unsupported records layout in {path}")
    return build_tree(data), AssignmentStore()


def load_assigned(path: Path) -> AssignmentStore:
    data = _read_json(path)
    if isinstance(data, dict):
        return AssignmentStore.from_costs(data)
    if isinstance(data, list):
        return AssignmentStore.from_costs({str(row["serviceTypeId"]): row.get("cost") for row in data})
    raise ValueError(f"Unsupported assignments layout in {path}")


def _parse_toggle(raw: str) -> Tuple[str, bool]:
    node_id, _, state = raw.rpartition(":")
    if not node_id or state.lower() not in ("on", "off"):
        return raw, True
    return node_id, state.lower() == "on"


def _parse_cost(raw: str) -> Tuple[str, str]:
    leaf_id, sep, value = raw.partition("=")
    if not sep or not leaf_id.strip():
        raise ValueError(f"--cost expects ID=VALUE, got {raw!r}")
    return leaf_id, value


def _render_lines(nodes: List[Dict[str, Any]], out: List[str]) -> None:
    for n in nodes:
        mark = "[x]" if n["assigned"] else "[ ]"
        pad = "  " * n["depth"]
        label = f"{n['name']} ({n['code']})" if n["code"] else n["name"]
        if n["leaf"]:
            out.append(f"{pad}{mark} {label}  {n['cost']:.2f}")
        else:
            out.append(f"{pad}{mark} {label}  [{n['assignedLeaves']}/{n['totalLeaves']}]")
        _render_lines(n["children"], out)


def render_tree(tree: ServiceTree, store: AssignmentStore, search: Optional[str]) -> str:
    nodes = prune_forest(tree, visible_ids(tree, search), default_expanded(tree), store)
    lines: List[str] = []
    _render_lines(nodes, lines)
    lines.append("")
    lines.append(f"{len(store)} services selected, total cost {total_cost(store):.2f}")
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Service tree / branch assignment preview")
    p.add_argument("--records", required=True, type=Path, help="Service types JSON (flat or branch tree)")
    p.add_argument("--assigned", type=Path, help="Assignments JSON to start from")
    p.add_argument("--toggle", action="append", default=[], metavar="ID[:on|off]",
                   help="Toggle a node (repeatable; default state 'on')")
    p.add_argument("--cost", action="append", default=[], metavar="ID=VALUE",
                   help="Set the cost of an assigned leaf (repeatable)")
    p.add_argument("--search", default=None, help="Name filter; ancestors of matches stay visible")
    p.add_argument("--payload", action="store_true", help="Print the replace-all JSON payload instead of the tree")
    p.add_argument("--log-level", dest="log_level", default="WARNING",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   help="Logging level (default: WARNING)")
    args = p.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))

    try:
        tree, store = load_records(args.records)
        if args.assigned:
            store = load_assigned(args.assigned)
            store = AssignmentStore({k: v for k, v in store.items() if k in tree and tree.is_leaf(k)})
        costs = [_parse_cost(raw) for raw in args.cost]
    except (OSError, ValueError, KeyError, TypeError) as e:
        log.error("Invalid input: %s", e)
        return 2

    try:
        for raw in args.toggle:
            node_id, state = _parse_toggle(raw)
            store = toggle(store, tree, node_id, state)
        for leaf_id, value in costs:
            store = set_cost(store, leaf_id, value)
    except UnknownServiceNodeError as e:
        log.error("%s", e)
        return 1

    if args.payload:
        print(json.dumps(build_payload(store), indent=2))
    else:
        print(render_tree(tree, store, args.search))
    return 0


if __name__ == "__main__":
    sys.exit(main())
