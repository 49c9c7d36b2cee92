"""
Hybrid RBAC/ABAC access-control engine.

- Role & permission registry and ordered policy registry
- Condition evaluator over a merged user/context attribute map
- Access evaluator producing one AccessDecision per request
- Field-level allow-lists per role
"""

from .models import (
    Role, Permission, Policy, Condition, ConditionOperator, PolicyEffect, Status,
    RoleCreate, RoleUpdate, PermissionCreate, PolicyCreate,
    UserRecord, UserAttributes, AccessRequest, AccessDecision,
    FieldCheckResult, ConfigSnapshot,
)
from .conditions import ConditionEvaluator
from .registry import RolePermissionRegistry, PolicyRegistry
from .fields import FieldPermissionFilter
from .engine import AccessEvaluator
from .repositories import (
    UserDirectory, RoleRepository, PermissionRepository, PolicyRepository,
    MongoUserDirectory, MongoRoleRepository, MongoPermissionRepository, MongoPolicyRepository,
)
from .memory import (
    MemoryUserDirectory, MemoryRoleRepository, MemoryPermissionRepository, MemoryPolicyRepository,
)

__all__ = [
    # Models
    "Role", "Permission", "Policy", "Condition", "ConditionOperator", "PolicyEffect", "Status",
    "RoleCreate", "RoleUpdate", "PermissionCreate", "PolicyCreate",
    "UserRecord", "UserAttributes", "AccessRequest", "AccessDecision",
    "FieldCheckResult", "ConfigSnapshot",

    # Evaluation
    "ConditionEvaluator", "RolePermissionRegistry", "PolicyRegistry",
    "FieldPermissionFilter", "AccessEvaluator",

    # Collaborators
    "UserDirectory", "RoleRepository", "PermissionRepository", "PolicyRepository",
    "MongoUserDirectory", "MongoRoleRepository", "MongoPermissionRepository", "MongoPolicyRepository",
    "MemoryUserDirectory", "MemoryRoleRepository", "MemoryPermissionRepository", "MemoryPolicyRepository",
]
