# File: backend/tests/conftest.py
# Version: v0.2.0
"""
Test bootstrap: ensure project root is on sys.path so 'backend.*' imports work.

Also provides the small service catalogs shared by the engine, session and API
tests, and an in-memory stand-in for the upstream appointment service.
"""
import copy
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]  # repo root (../.. from this file)
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.core.catalog.errors import UpstreamError  # noqa: E402
from backend.app.core.catalog.tree_builder import build_tree  # noqa: E402


GENERAL_RECORDS = [
    {"id": "General", "parentId": None, "name": "General", "code": "GEN", "isLeaf": False},
    {"id": "Consultation", "parentId": "General", "name": "Consultation", "code": "CONS", "isLeaf": True, "defaultCost": 20},
    {"id": "Lab Test", "parentId": "General", "name": "Lab Test", "code": "LAB", "isLeaf": True, "defaultCost": 15},
]

CLINIC_RECORDS = [
    {"id": "CLINIC", "name": "Clinic", "code": "CL"},
    {"id": "IMG", "parentId": "CLINIC", "name": "Imaging", "code": "IMG", "displayOrder": 2},
    {"id": "XR", "parentId": "IMG", "name": "X-Ray", "code": "XR", "isLeaf": True, "defaultCost": 50},
    {"id": "MRI", "parentId": "IMG", "name": "MRI Scan", "code": "MRI", "isLeaf": True, "defaultCost": 300},
    {"id": "DEN", "parentId": "CLINIC", "name": "Dental", "code": "DEN", "displayOrder": 1},
    {"id": "CLN", "parentId": "DEN", "name": "Cleaning", "code": "CLN", "isLeaf": True, "defaultCost": 40},
    {"id": "PH", "name": "Pharmacy", "code": "PH"},
    {"id": "RF", "parentId": "PH", "name": "Refill", "code": "RF", "isLeaf": True, "defaultCost": 5},
]

BRANCH_DOC = {
    "organizationBranchId": "BR-1",
    "serviceTree": [
        {
            "serviceTypeId": "General", "name": "General", "code": "GEN", "leaf": False,
            "assigned": False, "cost": None,
            "children": [
                {"serviceTypeId": "Consultation", "name": "Consultation", "code": "CONS", "leaf": True,
                 "assigned": True, "cost": 20, "children": []},
                {"serviceTypeId": "Lab Test", "name": "Lab Test", "code": "LAB", "leaf": True,
                 "assigned": False, "cost": 15, "children": []},
            ],
        },
        {
            "serviceTypeId": "Imaging", "name": "Imaging", "code": "IMG", "leaf": False,
            "assigned": False, "cost": None,
            "children": [
                {"serviceTypeId": "X-Ray", "name": "X-Ray", "code": "XR", "leaf": True,
                 "assigned": False, "cost": 50, "children": []},
            ],
        },
    ],
}


class FakeBranchClient:
    """Async stand-in for BranchServicesClient.

    - `fail_fetch` / `fail_save`: message to raise as UpstreamError.
    - `gate`: asyncio.Event the save waits on, to hold a save in flight.
    """

    def __init__(self, doc=None):
        self.doc = copy.deepcopy(doc if doc is not None else BRANCH_DOC)
        self.summaries = []
        self.saved = []
        self.fail_fetch = None
        self.fail_save = None
        self.gate = None

    async def fetch_summaries(self):
        if self.fail_fetch:
            raise UpstreamError(self.fail_fetch, status_code=500)
        return list(self.summaries)

    async def fetch_tree(self, branch_id):
        if self.fail_fetch:
            raise UpstreamError(self.fail_fetch, status_code=500)
        return copy.deepcopy(self.doc)

    async def replace_assignments(self, branch_id, payload):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_save:
            raise UpstreamError(self.fail_save, status_code=400)
        self.saved.append((branch_id, copy.deepcopy(payload)))


@pytest.fixture
def general_tree():
    return build_tree(GENERAL_RECORDS)


@pytest.fixture
def clinic_tree():
    return build_tree(CLINIC_RECORDS)


@pytest.fixture
def fake_client():
    return FakeBranchClient()
