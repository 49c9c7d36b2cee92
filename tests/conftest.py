"""
Shared pytest fixtures for the accessgate test suite.

Every evaluator built here runs on in-memory collaborators with synchronous
audit writes, so audit assertions do not depend on task scheduling.
"""

import pytest

from accessgate.core.access_control.engine import AccessEvaluator
from accessgate.core.access_control.memory import (
    MemoryPermissionRepository,
    MemoryPolicyRepository,
    MemoryRoleRepository,
    MemoryUserDirectory,
)
from accessgate.core.access_control.models import (
    Permission,
    Role,
    UserRecord,
)
from accessgate.core.audit.sinks import MemoryAuditSink
from accessgate.core.config.settings import AccessSettings


@pytest.fixture
def settings():
    return AccessSettings(storage_backend="memory", audit_fire_and_forget=False)


@pytest.fixture
def audit_sink():
    return MemoryAuditSink()


@pytest.fixture
def users():
    return MemoryUserDirectory([
        UserRecord(
            id="u1",
            role="factory_admin",
            factory_id="f1",
            organization_id="org1",
            department="compliance",
            location="phnom_penh",
        ),
        UserRecord(id="w1", role="worker", factory_id="f1", department="production"),
        UserRecord(id="h1", role="hr_staff", factory_id="f1", department="hr"),
    ])


@pytest.fixture
def permissions():
    return [
        Permission(id="perm_assign", name="Assign grievance cases", resource="grievance_cases", action="assign"),
        Permission(id="perm_read", name="Read grievance cases", resource="grievance_cases", action="read"),
        Permission(id="perm_users_read", name="Read users", resource="users", action="read"),
    ]


@pytest.fixture
def roles():
    return [
        Role(id="factory_admin", name="factory_admin", permission_ids=["perm_assign", "perm_read", "perm_users_read"]),
        Role(id="worker", name="worker", permission_ids=["perm_read"]),
        Role(id="hr_staff", name="hr_staff", permission_ids=["perm_users_read"]),
    ]


@pytest.fixture
def make_evaluator(settings, audit_sink, users, roles, permissions):
    """Build an evaluator over in-memory stores; call `initialize` in the test."""

    def _make(policies=(), **overrides) -> AccessEvaluator:
        options = dict(
            user_directory=users,
            role_repository=MemoryRoleRepository(roles),
            permission_repository=MemoryPermissionRepository(permissions),
            policy_repository=MemoryPolicyRepository(policies),
            audit_sink=audit_sink,
            settings=settings,
        )
        options.update(overrides)
        return AccessEvaluator(**options)

    return _make
