from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from accessgate.utils.exceptions import NotFoundError, RepositoryError
from accessgate.utils.helpers import parse_document_id
from .models import GrievanceNote


class GrievanceStore(ABC):
    """Where grievance cases and their notes live"""

    @abstractmethod
    async def update_case(self, case_id: str, changes: Dict[str, Any]) -> None:
        """Apply `changes` to an existing case; NotFoundError if there is none"""

    @abstractmethod
    async def add_note(self, note: GrievanceNote) -> None:
        pass


class MongoGrievanceStore(GrievanceStore):
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        cases_collection: str = "grievance_cases",
        notes_collection: str = "grievance_notes",
    ):
        self.db = db
        self.cases = db[cases_collection]
        self.notes = db[notes_collection]

    async def update_case(self, case_id: str, changes: Dict[str, Any]) -> None:
        try:
            result = await self.cases.update_one(
                {"_id": parse_document_id(case_id)}, {"$set": changes}
            )
        except PyMongoError as e:
            raise RepositoryError(f"Failed to update grievance case {case_id}: {e}") from e

        if result.matched_count == 0:
            raise NotFoundError(f"Grievance case '{case_id}' not found")

    async def add_note(self, note: GrievanceNote) -> None:
        doc = note.model_dump(mode="python")
        doc["_id"] = doc.pop("id")
        try:
            await self.notes.insert_one(doc)
        except PyMongoError as e:
            raise RepositoryError(f"Failed to add note to grievance case {note.case_id}: {e}") from e


class MemoryGrievanceStore(GrievanceStore):
    def __init__(self, cases: Optional[Dict[str, Dict[str, Any]]] = None):
        self.cases: Dict[str, Dict[str, Any]] = {k: dict(v) for k, v in (cases or {}).items()}
        self.notes: List[GrievanceNote] = []

    def add_case(self, case_id: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.cases[case_id] = dict(data or {})

    async def update_case(self, case_id: str, changes: Dict[str, Any]) -> None:
        if case_id not in self.cases:
            raise NotFoundError(f"Grievance case '{case_id}' not found")
        self.cases[case_id].update(changes)

    async def add_note(self, note: GrievanceNote) -> None:
        self.notes.append(note)
