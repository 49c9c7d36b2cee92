from fastapi import APIRouter, Depends

from accessgate.core.dependencies import get_grievance_service
from accessgate.core.grievances.models import CaseAssignment, NoteCreate, StatusChange
from accessgate.core.grievances.service import GrievanceService
from accessgate.utils.helpers import serialize_mongo_doc, success_response

grievances = APIRouter()


@grievances.post("/{case_id}/assign")
async def assign_case(
    case_id: str,
    assignment: CaseAssignment,
    service: GrievanceService = Depends(get_grievance_service),
):
    """
    Assign a case to a committee member. Responds 403 when the member may
    not assign it.
    """
    result = await service.assign_case(case_id, assignment.member_id)
    return success_response(data=serialize_mongo_doc(result))


@grievances.patch("/{case_id}/status")
async def update_status(
    case_id: str,
    change: StatusChange,
    service: GrievanceService = Depends(get_grievance_service),
):
    result = await service.update_status(case_id, change.status, change.user_id, change.notes)
    return success_response(data=serialize_mongo_doc(result))


@grievances.post("/{case_id}/notes", status_code=201)
async def add_note(
    case_id: str,
    note_data: NoteCreate,
    service: GrievanceService = Depends(get_grievance_service),
):
    note = await service.add_note(case_id, note_data.user_id, note_data.note, note_data.is_internal)
    return success_response(data=note.model_dump(mode="json"), code=201)
