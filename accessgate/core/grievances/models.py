"""
Grievance case updates and notes written by guarded operations
"""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from accessgate.core.access_control.models import generate_id, utc_now

GRIEVANCE_RESOURCE = "grievance_cases"


class GrievanceStatus(str, Enum):
    NEW = "new"
    SUBMITTED = "submitted"
    ASSIGNED = "assigned"
    INVESTIGATING = "investigating"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    CLOSED = "closed"


# Status changes that also stamp when the case entered that stage
STATUS_TIMESTAMPS = {
    GrievanceStatus.INVESTIGATING: "investigation_started_at",
    GrievanceStatus.RESOLVED: "resolved_at",
    GrievanceStatus.CLOSED: "closed_at",
}


class GrievanceNote(BaseModel):
    id: str = Field(default_factory=lambda: generate_id("note"))
    case_id: str
    user_id: str
    note: str = Field(..., min_length=1)
    is_internal: bool = False
    created_at: datetime = Field(default_factory=utc_now)


# ── Request payloads ────────────────────────────────────────────


class CaseAssignment(BaseModel):
    member_id: str


class StatusChange(BaseModel):
    user_id: str
    status: GrievanceStatus
    notes: str = ""


class NoteCreate(BaseModel):
    user_id: str
    note: str = Field(..., min_length=1)
    is_internal: bool = False
