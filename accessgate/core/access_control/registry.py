"""
In-memory catalogs of roles, permissions and policies.

Each registry holds an immutable snapshot that is swapped wholesale on
write. Readers take the current reference without locking; writers
serialize on an asyncio.Lock, persist through the repository first and only
then publish the new snapshot.
"""

import asyncio
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from accessgate.utils.exceptions import NotFoundError, ValidationError
from accessgate.utils.logger import Logger
from .models import (
    Permission,
    PermissionCreate,
    Policy,
    PolicyCreate,
    Role,
    RoleCreate,
    RoleUpdate,
    generate_id,
    utc_now,
)
from .repositories import PermissionRepository, PolicyRepository, RoleRepository

registry_logger = Logger(__name__)


def _validated(model, data):
    """Coerce a payload into `model`, surfacing failures as ValidationError"""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {model.__name__} payload: {e.errors(include_url=False)}") from e


class RolePermissionRegistry:
    """Catalog of roles and permissions; resolves a role to its permissions"""

    def __init__(self, role_repository: RoleRepository, permission_repository: PermissionRepository):
        self.role_repository = role_repository
        self.permission_repository = permission_repository
        self._roles: Mapping[str, Role] = MappingProxyType({})
        self._permissions: Mapping[str, Permission] = MappingProxyType({})
        self._lock = asyncio.Lock()
        self.generation = 0

    @property
    def roles(self) -> List[Role]:
        return list(self._roles.values())

    @property
    def permissions(self) -> List[Permission]:
        return list(self._permissions.values())

    async def load_roles(self) -> int:
        roles = await self.role_repository.list()
        async with self._lock:
            self._roles = MappingProxyType({role.id: role for role in roles})
            self.generation += 1
        registry_logger.info(f"Loaded {len(roles)} roles")
        return len(roles)

    async def load_permissions(self) -> int:
        permissions = await self.permission_repository.list()
        async with self._lock:
            self._permissions = MappingProxyType({p.id: p for p in permissions})
            self.generation += 1
        registry_logger.info(f"Loaded {len(permissions)} permissions")
        return len(permissions)

    def get_role(self, role: str) -> Optional[Role]:
        """Look a role up by id, falling back to its name"""
        roles = self._roles
        found = roles.get(role)
        if found is not None:
            return found
        for candidate in roles.values():
            if candidate.name == role:
                return candidate
        return None

    def get_permissions_for_role(self, role: str) -> List[Permission]:
        role_data = self.get_role(role)
        if role_data is None or not role_data.is_active:
            return []

        permissions = self._permissions
        resolved = []
        for permission_id in role_data.permission_ids:
            permission = permissions.get(permission_id)
            if permission is None:
                registry_logger.debug(
                    f"Role '{role_data.id}' references unknown permission '{permission_id}'"
                )
                continue
            resolved.append(permission)
        return resolved

    async def create_role(self, data: Union[RoleCreate, Dict[str, Any]]) -> Role:
        payload = _validated(RoleCreate, data)
        role = Role(
            **payload.model_dump(exclude={"id"}),
            id=payload.id or generate_id("role"),
        )

        async with self._lock:
            if role.id in self._roles:
                raise ValidationError(f"Role '{role.id}' already exists")
            await self.role_repository.create(role)
            self._roles = MappingProxyType({**self._roles, role.id: role})
            self.generation += 1

        registry_logger.info(f"Created role: {role.name} ({role.id})")
        return role

    async def update_role(self, role_id: str, patch: Union[RoleUpdate, Dict[str, Any]]) -> Role:
        update = _validated(RoleUpdate, patch)
        changes = update.model_dump(exclude_unset=True, mode="json")
        changes["updated_at"] = utc_now()

        async with self._lock:
            current = self._roles.get(role_id)
            if current is None:
                raise NotFoundError(f"Role '{role_id}' not found")

            updated = _validated(Role, {**current.model_dump(), **changes})
            await self.role_repository.update(role_id, changes)
            self._roles = MappingProxyType({**self._roles, role_id: updated})
            self.generation += 1

        registry_logger.info(f"Updated role: {role_id}")
        return updated

    async def create_permission(self, data: Union[PermissionCreate, Dict[str, Any]]) -> Permission:
        payload = _validated(PermissionCreate, data)
        permission = Permission(
            **payload.model_dump(exclude={"id"}),
            id=payload.id or generate_id("permission"),
        )

        async with self._lock:
            if permission.id in self._permissions:
                raise ValidationError(f"Permission '{permission.id}' already exists")
            await self.permission_repository.create(permission)
            self._permissions = MappingProxyType({**self._permissions, permission.id: permission})
            self.generation += 1

        registry_logger.info(f"Created permission: {permission.name} ({permission.id})")
        return permission


class PolicyRegistry:
    """Ordered catalog of policies; insertion order is evaluation order"""

    def __init__(self, policy_repository: PolicyRepository):
        self.policy_repository = policy_repository
        self._policies: Tuple[Policy, ...] = ()
        self._lock = asyncio.Lock()
        self.generation = 0

    @property
    def policies(self) -> List[Policy]:
        return list(self._policies)

    async def load(self) -> int:
        policies = await self.policy_repository.list()
        async with self._lock:
            self._policies = tuple(policies)
            self.generation += 1
        registry_logger.info(f"Loaded {len(policies)} policies")
        return len(policies)

    def applicable_policies(self, resource: str, action: str) -> List[Policy]:
        return [policy for policy in self._policies if policy.applies_to(resource, action)]

    async def create_policy(self, data: Union[PolicyCreate, Dict[str, Any]]) -> Policy:
        payload = _validated(PolicyCreate, data)
        policy = Policy(
            **payload.model_dump(exclude={"id"}),
            id=payload.id or generate_id("policy"),
        )

        async with self._lock:
            if any(existing.id == policy.id for existing in self._policies):
                raise ValidationError(f"Policy '{policy.id}' already exists")
            await self.policy_repository.create(policy)
            self._policies = self._policies + (policy,)
            self.generation += 1

        registry_logger.info(f"Created policy: {policy.name} ({policy.id})")
        return policy
