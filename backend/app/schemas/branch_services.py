# File: backend/app/schemas/branch_services.py
# Version: v0.3.0
"""
Pydantic schemas for branch service editor sessions.

Field names are camelCase to match the appointment service payloads the UI
already speaks (`serviceTypeId`, `assignedServiceCount`, ...).
"""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator


class OpenSessionRequest(BaseModel):
    """Open an editor session for one organization branch."""
    branchId: constr(strip_whitespace=True, min_length=1) = Field(
        ..., description="Organization branch id whose services are configured."
    )


class ToggleRequest(BaseModel):
    serviceTypeId: constr(min_length=1)
    assigned: bool = Field(..., description="Desired state; cascades to every leaf when the node is a group.")


class CostUpdateRequest(BaseModel):
    """Raw operator input; anything unparseable or negative is stored as 0."""
    cost: Union[float, str, None] = None


class AssignmentItem(BaseModel):
    serviceTypeId: str
    cost: float = Field(..., ge=0)


class AssignmentSetPayload(BaseModel):
    """Replace-all payload: the branch ends up with exactly these assignments."""
    assignments: List[AssignmentItem] = Field(default_factory=list)


class TreeNodeView(BaseModel):
    id: str
    name: str
    code: str
    leaf: bool
    depth: int = Field(..., ge=0)
    assigned: bool
    cost: float
    expanded: bool
    assignedLeaves: int
    totalLeaves: int
    children: List["TreeNodeView"] = Field(default_factory=list)


class SessionSummary(BaseModel):
    selectedCount: int
    totalCost: float
    dirty: bool
    saving: bool


class SessionView(BaseModel):
    sessionId: str
    branchId: str
    search: str = ""
    tree: List[TreeNodeView] = Field(default_factory=list)
    summary: SessionSummary


class SaveResponse(BaseModel):
    status: str = "saved"
    assignments: int = Field(..., ge=0)


class BranchSummary(BaseModel):
    """Row of the branch overview (one per branch known upstream)."""
    model_config = ConfigDict(extra="ignore")

    organizationBranchId: str
    branchName: Optional[str] = None
    organizationId: Optional[str] = None
    organizationName: Optional[str] = None
    assignedServiceCount: int = 0

    @field_validator("organizationBranchId", "organizationId", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    @field_validator("assignedServiceCount", mode="before")
    @classmethod
    def _missing_count_is_zero(cls, v):
        return 0 if v is None else v


TreeNodeView.model_rebuild()
