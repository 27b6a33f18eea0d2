# File: backend/tests/test_assignments.py
# Version: v0.1.0
"""
Unit tests for the assignment store and toggle engine:
- leaf toggle locality
- group cascade (and no effect outside the group)
- immutable updates
- cost editing and normalization
"""

from __future__ import annotations

import math

import pytest

from backend.app.core.catalog.assignments import AssignmentStore, normalize_cost, set_cost, toggle
from backend.app.core.catalog.errors import UnknownServiceNodeError
from backend.app.core.catalog.models import Assignment


def test_leaf_toggle_changes_exactly_one_key(clinic_tree):
    start = AssignmentStore.from_costs({"RF": 5, "CLN": 40})
    on = toggle(start, clinic_tree, "XR", True)
    assert set(on) - set(start) == {"XR"}
    assert {k: v for k, v in on.items() if k != "XR"} == dict(start)
    assert on["XR"].cost == 50.0

    off = toggle(on, clinic_tree, "CLN", False)
    assert set(on) - set(off) == {"CLN"}
    assert off["RF"] == on["RF"]


def test_reassigning_keeps_existing_cost(general_tree):
    store = AssignmentStore.from_costs({"Consultation": 99})
    again = toggle(store, general_tree, "Consultation", True)
    assert again["Consultation"].cost == 99.0


def test_group_cascade_on_and_off(clinic_tree):
    store = AssignmentStore.from_costs({"RF": 5})
    on = toggle(store, clinic_tree, "CLINIC", True)
    assert set(on) == {"XR", "MRI", "CLN", "RF"}
    assert all(a.cost >= 0 for a in on.values())

    off = toggle(on, clinic_tree, "IMG", False)
    assert set(off) == {"CLN", "RF"}
    # sibling subtree and other root untouched
    assert off["CLN"] == on["CLN"]
    assert off["RF"] == on["RF"]


def test_group_ids_never_written_and_stale_ones_purged(clinic_tree):
    stale = AssignmentStore({"IMG": Assignment(leaf_id="IMG", cost=1.0)})
    store = toggle(stale, clinic_tree, "IMG", True)
    assert "IMG" not in store
    assert set(store) == {"XR", "MRI"}


def test_toggle_returns_new_store(general_tree):
    before = AssignmentStore()
    after = toggle(before, general_tree, "General", True)
    assert len(before) == 0
    assert after is not before
    assert len(after) == 2


def test_unknown_node_raises(general_tree):
    with pytest.raises(UnknownServiceNodeError):
        toggle(AssignmentStore(), general_tree, "nope", True)
    with pytest.raises(KeyError):
        toggle(AssignmentStore(), general_tree, "nope", False)


def test_set_cost_is_noop_for_unassigned():
    store = AssignmentStore.from_costs({"A": 1})
    assert set_cost(store, "B", 10) is store
    assert "B" not in set_cost(store, "B", 10)


def test_set_cost_parses_and_clamps():
    store = AssignmentStore.from_costs({"A": 1})
    assert set_cost(store, "A", "25")["A"].cost == 25.0
    assert set_cost(store, "A", " 12.5 ")["A"].cost == 12.5
    assert set_cost(store, "A", -3)["A"].cost == 0.0
    assert set_cost(store, "A", "abc")["A"].cost == 0.0
    assert store["A"].cost == 1.0


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0.0),
        ("", 0.0),
        ("   ", 0.0),
        ("abc", 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (-1, 0.0),
        ("-4.5", 0.0),
        (0, 0.0),
        (7, 7.0),
        ("19.99", 19.99),
        ([1], 0.0),
    ],
)
def test_normalize_cost(raw, expected):
    value = normalize_cost(raw)
    assert isinstance(value, float)
    assert math.isclose(value, expected)
