# File: backend/tests/test_payload.py
# Version: v0.1.0
"""
Tests for the replace-all payload and the store diff used for the dirty flag.
"""

from __future__ import annotations

from backend.app.core.catalog.assignments import AssignmentStore
from backend.app.core.catalog.payload import build_payload, diff_stores


def test_payload_has_one_entry_per_leaf():
    store = AssignmentStore.from_costs({"Consultation": 20, "Lab Test": 25})
    payload = build_payload(store)
    assert payload == {
        "assignments": [
            {"serviceTypeId": "Consultation", "cost": 20.0},
            {"serviceTypeId": "Lab Test", "cost": 25.0},
        ]
    }
    assert all(isinstance(item["cost"], float) for item in payload["assignments"])


def test_empty_store_gives_empty_assignment_list():
    assert build_payload(AssignmentStore()) == {"assignments": []}


def test_diff_reports_added_removed_and_cost_changes():
    initial = AssignmentStore.from_costs({"A": 1, "B": 2, "C": 3})
    current = AssignmentStore.from_costs({"B": 2, "C": 30, "D": 4})
    diff = diff_stores(initial, current)
    assert diff.added == ("D",)
    assert diff.removed == ("A",)
    assert diff.cost_changed == ("C",)
    assert not diff.is_empty


def test_diff_of_equal_stores_is_empty():
    a = AssignmentStore.from_costs({"A": 1})
    assert diff_stores(a, AssignmentStore.from_costs({"A": "1"})).is_empty
