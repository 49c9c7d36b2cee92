import asyncio
from typing import Any, Dict, List, Optional, Union

from accessgate.core.audit.logger import AccessAuditLogger
from accessgate.core.audit.models import AuditEntry
from accessgate.core.audit.sinks import AuditSink
from accessgate.core.config.settings import AccessSettings
from accessgate.utils.exceptions import AccessDeniedError, NotFoundError, ValidationError
from accessgate.utils.logger import Logger
from .conditions import ConditionEvaluator
from .defaults import ROLE_HIERARCHY
from .exporter import snapshot_to_csv
from .fields import FieldPermissionFilter
from .models import (
    AccessDecision,
    AccessRequest,
    ConfigSnapshot,
    Permission,
    PermissionCreate,
    Policy,
    PolicyCreate,
    PolicyEffect,
    Role,
    RoleCreate,
    RoleUpdate,
    UserRecord,
)
from .registry import PolicyRegistry, RolePermissionRegistry
from .repositories import (
    PermissionRepository,
    PolicyRepository,
    RoleRepository,
    UserDirectory,
)

engine_logger = Logger(__name__)

USER_NOT_FOUND = "User not found"
INSUFFICIENT_ROLE_PERMISSIONS = "Insufficient role permissions"
NO_APPLICABLE_POLICIES = "No applicable policies found"
ACCESS_GRANTED = "Access granted"
SYSTEM_ERROR = "System error"

EXPORT_FORMATS = ("json", "csv")


class AccessEvaluator:
    """Hybrid RBAC/ABAC decision engine.

    A request passes, in order: identity resolution, the role permission
    gate, the first matching policy, and the field allow-list. The first
    failing step decides. Granted decisions are audited. Any unexpected
    error is converted into a denial; `check_access` never raises.
    """

    def __init__(
        self,
        user_directory: UserDirectory,
        role_repository: RoleRepository,
        permission_repository: PermissionRepository,
        policy_repository: PolicyRepository,
        audit_sink: AuditSink,
        settings: Optional[AccessSettings] = None,
        field_filter: Optional[FieldPermissionFilter] = None,
        condition_evaluator: Optional[ConditionEvaluator] = None,
    ):
        self.settings = settings or AccessSettings()
        self.user_directory = user_directory
        self.roles = RolePermissionRegistry(role_repository, permission_repository)
        self.policies = PolicyRegistry(policy_repository)
        self.field_filter = field_filter or FieldPermissionFilter(self.settings.field_permissions)
        self.condition_evaluator = condition_evaluator or ConditionEvaluator()
        self.audit_logger = AccessAuditLogger(
            audit_sink, fire_and_forget=self.settings.audit_fire_and_forget
        )
        self.is_initialized = False

    async def initialize(self) -> None:
        """Bulk-load roles, permissions and policies concurrently"""
        await asyncio.gather(
            self.roles.load_roles(),
            self.roles.load_permissions(),
            self.policies.load(),
        )
        self.is_initialized = True
        engine_logger.info("Access evaluator initialized")

    async def shutdown(self) -> None:
        await self.audit_logger.drain()

    # ── Decisions ───────────────────────────────────────────────

    async def check_access(
        self,
        user_id: str,
        resource: str,
        action: str,
        context: Optional[Dict[str, Any]] = None,
        requested_fields: Optional[List[str]] = None,
    ) -> AccessDecision:
        try:
            context = dict(context or {})
            decision = await self._decide(user_id, resource, action, context, requested_fields)
            if decision.allowed or self.settings.audit_denials:
                await self.audit_logger.record(
                    AuditEntry.for_decision(user_id, resource, action, context, decision.allowed)
                )
            return decision
        except Exception as e:
            engine_logger.error(
                f"Error checking access for {user_id} on {resource}:{action}: {e}", exc_info=True
            )
            return AccessDecision(allowed=False, reason=SYSTEM_ERROR)

    async def check_request(self, request: AccessRequest) -> AccessDecision:
        return await self.check_access(
            request.user_id,
            request.resource,
            request.action,
            request.context,
            request.requested_fields,
        )

    async def enforce(
        self,
        user_id: str,
        resource: str,
        action: str,
        context: Optional[Dict[str, Any]] = None,
        requested_fields: Optional[List[str]] = None,
    ) -> AccessDecision:
        """Like check_access, but raises AccessDeniedError on a denial"""
        decision = await self.check_access(user_id, resource, action, context, requested_fields)
        if not decision.allowed:
            raise AccessDeniedError(f"Access denied: {decision.reason}")
        return decision

    async def _decide(
        self,
        user_id: str,
        resource: str,
        action: str,
        context: Dict[str, Any],
        requested_fields: Optional[List[str]],
    ) -> AccessDecision:
        user = await self._get_user(user_id)
        if user is None:
            return AccessDecision(allowed=False, reason=USER_NOT_FOUND)

        role = self.roles.get_role(user.role)
        role_permissions = self.roles.get_permissions_for_role(user.role)
        if not any(permission.grants(resource, action) for permission in role_permissions):
            return AccessDecision(allowed=False, reason=INSUFFICIENT_ROLE_PERMISSIONS)

        attributes = {**user.attributes.model_dump(), **context}
        policy = self._first_matching_policy(resource, action, attributes)
        if policy is None:
            return AccessDecision(allowed=False, reason=NO_APPLICABLE_POLICIES)
        if policy.effect != PolicyEffect.ALLOW:
            return AccessDecision(
                allowed=False, reason=self._policy_reason(policy), policy_id=policy.id
            )

        if requested_fields is None:
            requested_fields = context.get("fields") or []
        field_check = self.field_filter.check_field_permissions(role.name, resource, requested_fields)
        if not field_check.allowed:
            return AccessDecision(
                allowed=False,
                reason=field_check.reason,
                unauthorized_fields=field_check.unauthorized_fields,
                policy_id=policy.id,
            )

        return AccessDecision(allowed=True, reason=ACCESS_GRANTED, policy_id=policy.id)

    def _first_matching_policy(
        self, resource: str, action: str, attributes: Dict[str, Any]
    ) -> Optional[Policy]:
        for policy in self.policies.applicable_policies(resource, action):
            if self.condition_evaluator.evaluate_all(policy.conditions, attributes):
                return policy
        return None

    @staticmethod
    def _policy_reason(policy: Policy) -> str:
        return policy.description or f"Policy '{policy.name}' matched"

    async def _get_user(self, user_id: str) -> Optional[UserRecord]:
        return await asyncio.wait_for(
            self.user_directory.get_user(user_id),
            timeout=self.settings.user_lookup_timeout_seconds,
        )

    # ── Queries ─────────────────────────────────────────────────

    def get_role_permissions(self, role: str) -> List[Permission]:
        return self.roles.get_permissions_for_role(role)

    async def get_user_effective_permissions(self, user_id: str) -> List[Permission]:
        """Role permissions whose own conditions hold for the user's attributes"""
        user = await self._get_user(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")

        attributes = user.attributes.model_dump()
        return [
            permission
            for permission in self.roles.get_permissions_for_role(user.role)
            if self.condition_evaluator.evaluate_all(permission.conditions, attributes)
        ]

    # ── Management ──────────────────────────────────────────────

    async def create_role(self, data: Union[RoleCreate, Dict[str, Any]]) -> Role:
        return await self.roles.create_role(data)

    async def update_role(self, role_id: str, patch: Union[RoleUpdate, Dict[str, Any]]) -> Role:
        return await self.roles.update_role(role_id, patch)

    async def create_permission(self, data: Union[PermissionCreate, Dict[str, Any]]) -> Permission:
        return await self.roles.create_permission(data)

    async def create_policy(self, data: Union[PolicyCreate, Dict[str, Any]]) -> Policy:
        return await self.policies.create_policy(data)

    # ── Export ──────────────────────────────────────────────────

    def snapshot(self) -> ConfigSnapshot:
        return ConfigSnapshot(
            roles=self.roles.roles,
            permissions=self.roles.permissions,
            policies=self.policies.policies,
            role_hierarchy=ROLE_HIERARCHY,
            field_permissions=self.field_filter.field_permissions,
        )

    def export_config(self, format: str = "json") -> Union[ConfigSnapshot, str]:
        """Export the loaded configuration as a snapshot (json) or CSV text"""
        if format not in EXPORT_FORMATS:
            raise ValidationError(f"Unsupported export format '{format}'")

        snapshot = self.snapshot()
        if format == "csv":
            return snapshot_to_csv(snapshot)
        return snapshot
