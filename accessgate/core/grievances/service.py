from typing import Any, Dict, Union

from accessgate.core.access_control.engine import AccessEvaluator
from accessgate.core.access_control.models import utc_now
from accessgate.utils.exceptions import ValidationError
from accessgate.utils.logger import Logger
from .models import GRIEVANCE_RESOURCE, STATUS_TIMESTAMPS, GrievanceNote, GrievanceStatus
from .stores import GrievanceStore

grievance_logger = Logger(__name__)


class GrievanceService:
    """Grievance case operations, each guarded by the access evaluator.

    Every operation runs `enforce` on `grievance_cases` first, with the case
    id as `caseId` in the request context, and touches the store only when
    access is granted. A denial raises AccessDeniedError.
    """

    def __init__(self, evaluator: AccessEvaluator, store: GrievanceStore):
        self.evaluator = evaluator
        self.store = store

    async def assign_case(self, case_id: str, member_id: str) -> Dict[str, Any]:
        await self.evaluator.enforce(member_id, GRIEVANCE_RESOURCE, "assign", {"caseId": case_id})

        changes = {
            "assigned_to": member_id,
            "assigned_at": utc_now(),
            "status": GrievanceStatus.ASSIGNED.value,
        }
        await self.store.update_case(case_id, changes)
        grievance_logger.info(f"Assigned grievance case {case_id} to {member_id}")
        return {"case_id": case_id, **changes}

    async def update_status(
        self,
        case_id: str,
        status: Union[GrievanceStatus, str],
        user_id: str,
        notes: str = "",
    ) -> Dict[str, Any]:
        try:
            status = GrievanceStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown grievance status '{status}'") from e
        await self.evaluator.enforce(
            user_id,
            GRIEVANCE_RESOURCE,
            "update_status",
            {"caseId": case_id, "newStatus": status.value},
        )

        now = utc_now()
        changes = {
            "status": status.value,
            "updated_at": now,
            "updated_by": user_id,
            "notes": notes,
        }
        if status in STATUS_TIMESTAMPS:
            changes[STATUS_TIMESTAMPS[status]] = now

        await self.store.update_case(case_id, changes)
        grievance_logger.info(f"Updated grievance case {case_id} status to {status.value}")
        return {"case_id": case_id, **changes}

    async def add_note(
        self, case_id: str, user_id: str, note: str, is_internal: bool = False
    ) -> GrievanceNote:
        await self.evaluator.enforce(user_id, GRIEVANCE_RESOURCE, "add_note", {"caseId": case_id})

        entry = GrievanceNote(case_id=case_id, user_id=user_id, note=note, is_internal=is_internal)
        await self.store.add_note(entry)
        grievance_logger.info(f"Added note {entry.id} to grievance case {case_id}")
        return entry
