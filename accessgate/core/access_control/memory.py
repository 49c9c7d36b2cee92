"""In-process collaborators for local runs and tests"""

from typing import Any, Dict, Iterable, List, Optional

from accessgate.utils.exceptions import NotFoundError
from .models import Permission, Policy, Role, UserRecord
from .repositories import (
    PermissionRepository,
    PolicyRepository,
    RoleRepository,
    UserDirectory,
)


class MemoryUserDirectory(UserDirectory):
    def __init__(self, users: Optional[Iterable[UserRecord]] = None):
        self.users: Dict[str, UserRecord] = {}
        for user in users or []:
            self.add_user(user)

    def add_user(self, user: UserRecord) -> None:
        self.users[user.id] = user

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)


class MemoryRoleRepository(RoleRepository):
    def __init__(self, roles: Optional[Iterable[Role]] = None):
        self.roles: Dict[str, Role] = {role.id: role for role in roles or []}

    async def list(self) -> List[Role]:
        return list(self.roles.values())

    async def create(self, role: Role) -> None:
        self.roles[role.id] = role

    async def update(self, role_id: str, patch: Dict[str, Any]) -> None:
        role = self.roles.get(role_id)
        if role is None:
            raise NotFoundError(f"Role '{role_id}' not found")
        self.roles[role_id] = Role.model_validate({**role.model_dump(), **patch})


class MemoryPermissionRepository(PermissionRepository):
    def __init__(self, permissions: Optional[Iterable[Permission]] = None):
        self.permissions: Dict[str, Permission] = {p.id: p for p in permissions or []}

    async def list(self) -> List[Permission]:
        return list(self.permissions.values())

    async def create(self, permission: Permission) -> None:
        self.permissions[permission.id] = permission


class MemoryPolicyRepository(PolicyRepository):
    def __init__(self, policies: Optional[Iterable[Policy]] = None):
        self.policies: Dict[str, Policy] = {p.id: p for p in policies or []}

    async def list(self) -> List[Policy]:
        return list(self.policies.values())

    async def create(self, policy: Policy) -> None:
        self.policies[policy.id] = policy
