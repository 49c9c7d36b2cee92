"""
Tests for guarded grievance operations: every write passes `enforce` first
and leaves the store untouched on a denial.
"""

from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from accessgate.core.access_control.models import Condition, PolicyEffect
from accessgate.core.grievances.models import GrievanceNote, GrievanceStatus
from accessgate.core.grievances.service import GrievanceService
from accessgate.core.grievances.stores import MemoryGrievanceStore, MongoGrievanceStore
from accessgate.utils.exceptions import (
    AccessDeniedError,
    NotFoundError,
    RepositoryError,
    ValidationError,
)
from tests.factories import case_policy
from tests.fakes import FakeCollection, FakeDatabase

GRIEVANCE_ACTIONS = ("assign", "update_status", "add_note")


async def _service(make_evaluator, policies=()):
    """factory_admin may run every grievance action on a case with a caseId"""
    evaluator = make_evaluator([*policies, case_policy(actions=GRIEVANCE_ACTIONS)])
    await evaluator.initialize()
    for action in ("update_status", "add_note"):
        await evaluator.create_permission({
            "id": f"perm_{action}",
            "name": f"Grievance {action}",
            "resource": "grievance_cases",
            "action": action,
        })
    await evaluator.update_role("factory_admin", {
        "permission_ids": ["perm_assign", "perm_read", "perm_update_status", "perm_add_note"],
    })
    store = MemoryGrievanceStore({"c1": {"status": "submitted"}})
    return GrievanceService(evaluator, store), store


class TestAssignCase:
    @pytest.mark.asyncio
    async def test_assigns_when_granted(self, make_evaluator, audit_sink):
        service, store = await _service(make_evaluator)

        result = await service.assign_case("c1", "u1")

        assert result["case_id"] == "c1"
        assert store.cases["c1"]["assigned_to"] == "u1"
        assert store.cases["c1"]["status"] == "assigned"
        assert store.cases["c1"]["assigned_at"].tzinfo is not None
        assert audit_sink.entries[-1].context == {"caseId": "c1"}

    @pytest.mark.asyncio
    async def test_denied_member_leaves_case_untouched(self, make_evaluator):
        service, store = await _service(make_evaluator)

        with pytest.raises(AccessDeniedError) as exc_info:
            await service.assign_case("c1", "w1")

        assert exc_info.value.detail == "Access denied: Insufficient role permissions"
        assert store.cases["c1"] == {"status": "submitted"}

    @pytest.mark.asyncio
    async def test_unknown_case(self, make_evaluator):
        service, _ = await _service(make_evaluator)

        with pytest.raises(NotFoundError):
            await service.assign_case("c404", "u1")


class TestUpdateStatus:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, stamp",
        [
            ("investigating", "investigation_started_at"),
            ("resolved", "resolved_at"),
            ("closed", "closed_at"),
        ],
    )
    async def test_stage_timestamps(self, make_evaluator, status, stamp):
        service, store = await _service(make_evaluator)

        await service.update_status("c1", status, "u1", notes="checked")

        case = store.cases["c1"]
        assert case["status"] == status
        assert case["updated_by"] == "u1"
        assert case["notes"] == "checked"
        assert case[stamp] == case["updated_at"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [GrievanceStatus.ASSIGNED, "escalated"])
    async def test_other_statuses_get_no_stage_timestamp(self, make_evaluator, status):
        service, store = await _service(make_evaluator)

        await service.update_status("c1", status, "u1")

        assert not {"investigation_started_at", "resolved_at", "closed_at"} & store.cases["c1"].keys()

    @pytest.mark.asyncio
    async def test_new_status_is_visible_to_policies(self, make_evaluator):
        no_close = case_policy(
            "p_no_close",
            effect=PolicyEffect.DENY,
            description="Only the committee closes cases",
            actions=("update_status",),
            conditions=[Condition(attribute="newStatus", operator="equals", value="closed")],
        )
        service, store = await _service(make_evaluator, policies=[no_close])

        with pytest.raises(AccessDeniedError) as exc_info:
            await service.update_status("c1", "closed", "u1")
        await service.update_status("c1", "resolved", "u1")

        assert exc_info.value.detail == "Access denied: Only the committee closes cases"
        assert store.cases["c1"]["status"] == "resolved"

    @pytest.mark.asyncio
    async def test_unknown_status_is_rejected(self, make_evaluator):
        service, store = await _service(make_evaluator)

        with pytest.raises(ValidationError):
            await service.update_status("c1", "archived", "u1")

        assert store.cases["c1"] == {"status": "submitted"}


class TestAddNote:
    @pytest.mark.asyncio
    async def test_note_is_stored(self, make_evaluator):
        service, store = await _service(make_evaluator)

        note = await service.add_note("c1", "u1", "Spoke with the worker", is_internal=True)

        assert note.id.startswith("note_")
        assert note.is_internal
        assert store.notes == [note]

    @pytest.mark.asyncio
    async def test_denied_user_adds_nothing(self, make_evaluator):
        service, store = await _service(make_evaluator)

        with pytest.raises(AccessDeniedError):
            await service.add_note("c1", "h1", "hello")

        assert store.notes == []


class TestMongoGrievanceStore:
    @pytest.mark.asyncio
    async def test_update_case_by_object_id(self):
        oid = ObjectId()
        cases = FakeCollection()
        store = MongoGrievanceStore(FakeDatabase(grievance_cases=cases))

        await store.update_case(str(oid), {"status": "assigned"})

        cases.update_one.assert_awaited_once_with({"_id": oid}, {"$set": {"status": "assigned"}})

    @pytest.mark.asyncio
    async def test_update_missing_case(self):
        cases = FakeCollection()
        cases.update_one.return_value = SimpleNamespace(matched_count=0)
        store = MongoGrievanceStore(FakeDatabase(grievance_cases=cases))

        with pytest.raises(NotFoundError):
            await store.update_case("c404", {"status": "assigned"})

    @pytest.mark.asyncio
    async def test_driver_errors(self):
        cases = FakeCollection()
        cases.update_one.side_effect = PyMongoError("down")
        notes = FakeCollection()
        notes.insert_one.side_effect = PyMongoError("down")
        store = MongoGrievanceStore(FakeDatabase(grievance_cases=cases, grievance_notes=notes))

        with pytest.raises(RepositoryError):
            await store.update_case("c1", {"status": "assigned"})
        with pytest.raises(RepositoryError):
            await store.add_note(GrievanceNote(case_id="c1", user_id="u1", note="x"))

    @pytest.mark.asyncio
    async def test_add_note_uses_note_id(self):
        notes = FakeCollection()
        store = MongoGrievanceStore(FakeDatabase(grievance_notes=notes))
        note = GrievanceNote(case_id="c1", user_id="u1", note="Follow up")

        await store.add_note(note)

        document = notes.insert_one.await_args.args[0]
        assert document["_id"] == note.id
        assert document["case_id"] == "c1"
        assert "id" not in document
