from .models import (
    GRIEVANCE_RESOURCE,
    CaseAssignment,
    GrievanceNote,
    GrievanceStatus,
    NoteCreate,
    StatusChange,
)
from .stores import GrievanceStore, MongoGrievanceStore, MemoryGrievanceStore
from .service import GrievanceService

__all__ = [
    "GRIEVANCE_RESOURCE",
    "CaseAssignment",
    "GrievanceNote",
    "GrievanceStatus",
    "NoteCreate",
    "StatusChange",
    "GrievanceStore",
    "MongoGrievanceStore",
    "MemoryGrievanceStore",
    "GrievanceService",
]
