"""
Tests for the MongoDB collaborators against small fake motor objects.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from accessgate.core.access_control.models import Permission, PolicyEffect, Role
from accessgate.core.access_control.repositories import (
    MongoPermissionRepository,
    MongoPolicyRepository,
    MongoRoleRepository,
    MongoUserDirectory,
)
from accessgate.core.audit.models import AuditEntry
from accessgate.core.audit.sinks import MongoAuditSink
from accessgate.utils.exceptions import NotFoundError, RepositoryError
from tests.factories import case_policy
from tests.fakes import FakeCollection, FakeDatabase

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestMongoRoleRepository:
    @pytest.mark.asyncio
    async def test_list_maps_documents_in_creation_order(self):
        roles = FakeCollection([
            {"_id": "worker", "name": "worker", "permission_ids": ["perm_read"], "status": "active",
             "created_at": T0, "updated_at": T0},
            {"_id": "hr_staff", "name": "hr_staff", "permission_ids": [], "status": "inactive",
             "created_at": T0 + timedelta(days=1), "updated_at": T0},
        ])
        repository = MongoRoleRepository(FakeDatabase(roles=roles), "roles")

        listed = await repository.list()

        assert [role.id for role in listed] == ["worker", "hr_staff"]
        assert not listed[1].is_active
        assert roles.cursor.sort_spec[0] == ("created_at", 1)

    @pytest.mark.asyncio
    async def test_create_uses_role_id_as_document_id(self):
        roles = FakeCollection()
        repository = MongoRoleRepository(FakeDatabase(roles=roles), "roles")

        await repository.create(Role(id="auditor", name="auditor", permission_ids=["perm_read"]))

        document = roles.insert_one.await_args.args[0]
        assert document["_id"] == "auditor"
        assert "id" not in document
        assert document["permission_ids"] == ["perm_read"]

    @pytest.mark.asyncio
    async def test_update_sets_patch(self):
        roles = FakeCollection()
        repository = MongoRoleRepository(FakeDatabase(roles=roles), "roles")

        await repository.update("worker", {"status": "inactive"})

        roles.update_one.assert_awaited_once_with({"_id": "worker"}, {"$set": {"status": "inactive"}})

    @pytest.mark.asyncio
    async def test_update_of_missing_document_raises_not_found(self):
        roles = FakeCollection()
        roles.update_one.return_value = SimpleNamespace(matched_count=0)
        repository = MongoRoleRepository(FakeDatabase(roles=roles), "roles")

        with pytest.raises(NotFoundError):
            await repository.update("ghost", {"name": "ghost role"})

    @pytest.mark.asyncio
    async def test_driver_errors_become_repository_errors(self):
        roles = FakeCollection(error=PyMongoError("connection refused"))
        roles.insert_one.side_effect = PyMongoError("connection refused")
        roles.update_one.side_effect = PyMongoError("connection refused")
        repository = MongoRoleRepository(FakeDatabase(roles=roles), "roles")

        with pytest.raises(RepositoryError):
            await repository.list()
        with pytest.raises(RepositoryError):
            await repository.create(Role(id="r", name="role"))
        with pytest.raises(RepositoryError):
            await repository.update("r", {"name": "role"})


class TestMongoPermissionAndPolicyRepositories:
    @pytest.mark.asyncio
    async def test_permission_round_trip_through_documents(self):
        permissions = FakeCollection()
        repository = MongoPermissionRepository(FakeDatabase(permissions=permissions), "permissions")
        permission = Permission(id="perm_read", name="Read cases", resource="grievance_cases", action="read")

        await repository.create(permission)
        permissions.cursor.docs = [permissions.insert_one.await_args.args[0]]

        assert await repository.list() == [permission]

    @pytest.mark.asyncio
    async def test_policy_documents_keep_conditions_and_effect(self):
        policies = FakeCollection()
        repository = MongoPolicyRepository(FakeDatabase(policies=policies), "policies")

        await repository.create(case_policy(effect=PolicyEffect.DENY))
        document = policies.insert_one.await_args.args[0]
        policies.cursor.docs = [document]
        loaded = (await repository.list())[0]

        assert document["_id"] == "policy_case_required"
        assert document["conditions"][0]["attribute"] == "caseId"
        assert loaded.effect == PolicyEffect.DENY
        assert loaded.conditions[0].operator == "exists"

    @pytest.mark.asyncio
    async def test_stored_unknown_operator_still_loads(self):
        policies = FakeCollection([{
            "_id": "p_regex",
            "name": "regex policy",
            "resources": ["users"],
            "actions": ["read"],
            "conditions": [{"attribute": "email", "operator": "regex", "value": ".*"}],
            "effect": "allow",
            "status": "active",
            "created_at": T0,
            "updated_at": T0,
        }])
        repository = MongoPolicyRepository(FakeDatabase(policies=policies), "policies")

        loaded = await repository.list()

        assert loaded[0].conditions[0].operator == "regex"

    @pytest.mark.asyncio
    async def test_malformed_document_fails_the_load(self):
        policies = FakeCollection([{"_id": "p_bad", "name": "missing scope", "effect": "allow"}])
        repository = MongoPolicyRepository(FakeDatabase(policies=policies), "policies")

        with pytest.raises(RepositoryError):
            await repository.list()


class TestMongoUserDirectory:
    @pytest.mark.asyncio
    async def test_object_id_lookup(self):
        oid = ObjectId()
        users = FakeCollection()
        users.find_one.return_value = {
            "_id": oid,
            "role": "factory_admin",
            "factory_id": "f1",
            "email": "admin@example.com",
            "created_at": T0,
        }
        directory = MongoUserDirectory(FakeDatabase(users=users))

        user = await directory.get_user(str(oid))

        users.find_one.assert_awaited_once_with({"_id": oid})
        assert user.id == str(oid)
        assert user.role == "factory_admin"
        assert user.clearance_level == "standard"

    @pytest.mark.asyncio
    async def test_plain_string_ids(self):
        users = FakeCollection()
        directory = MongoUserDirectory(FakeDatabase(users=users))

        assert await directory.get_user("firebase-uid-1") is None
        users.find_one.assert_awaited_once_with({"_id": "firebase-uid-1"})

    @pytest.mark.asyncio
    async def test_numeric_attributes_keep_their_kind(self):
        users = FakeCollection()
        users.find_one.return_value = {
            "_id": "u1", "role": "factory_admin", "clearance_level": 3, "factory_id": 12,
        }
        directory = MongoUserDirectory(FakeDatabase(users=users))

        user = await directory.get_user("u1")

        assert user.clearance_level == 3
        assert user.factory_id == 12
        assert user.attributes.model_dump()["clearance_level"] == 3

    @pytest.mark.asyncio
    async def test_user_without_role_is_unknown(self):
        users = FakeCollection()
        users.find_one.return_value = {"_id": "u9", "department": "hr"}
        directory = MongoUserDirectory(FakeDatabase(users=users))

        assert await directory.get_user("u9") is None


class TestMongoAuditSink:
    @pytest.mark.asyncio
    async def test_append_inserts_entry(self):
        logs = FakeCollection()
        sink = MongoAuditSink(FakeDatabase(access_logs=logs))

        await sink.append(AuditEntry(user_id="u1", resource="users", action="read", allowed=True))

        document = logs.insert_one.await_args.args[0]
        assert document["user_id"] == "u1"
        assert document["allowed"] is True
        assert document["ip_address"] == "unknown"
