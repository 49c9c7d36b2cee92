import uuid
from enum import Enum
from typing import Dict, List, Optional, Any, Union
from datetime import datetime, timezone

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class Status(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class PolicyEffect(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


Scalar = Union[StrictBool, StrictInt, StrictFloat, StrictStr]
ConditionValue = Union[Scalar, List[Scalar], None]


def _dedupe(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


class Condition(BaseModel):
    """A single predicate over the merged attribute map"""
    attribute: str = Field(..., min_length=1)
    # Kept as a plain string so stored policies with unknown operators still load
    operator: str
    value: ConditionValue = None


class Permission(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    resource: str
    action: str
    conditions: List[Condition] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def grants(self, resource: str, action: str) -> bool:
        return self.resource == resource and self.action == action


class Role(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    permission_ids: List[str] = Field(default_factory=list)
    status: Status = Status.ACTIVE
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("permission_ids")
    @classmethod
    def dedupe_permissions(cls, value):
        return _dedupe(value)

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE


class Policy(BaseModel):
    """Attribute-based rule scoped to resources and actions"""
    id: str
    name: str
    description: Optional[str] = None
    resources: List[str]
    actions: List[str]
    conditions: List[Condition] = Field(default_factory=list)
    effect: PolicyEffect
    status: Status = Status.ACTIVE
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE

    def applies_to(self, resource: str, action: str) -> bool:
        return self.is_active and resource in self.resources and action in self.actions


# ── Management payloads ─────────────────────────────────────────


class RoleCreate(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=3)
    description: Optional[str] = None
    permission_ids: List[str] = Field(default_factory=list)
    status: Status = Status.ACTIVE

    @field_validator("permission_ids")
    @classmethod
    def dedupe_permissions(cls, value):
        return _dedupe(value)


class RoleUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=3)
    description: Optional[str] = None
    permission_ids: Optional[List[str]] = None
    status: Optional[Status] = None


class PermissionCreate(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=3)
    description: Optional[str] = None
    resource: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    conditions: List[Condition] = Field(default_factory=list)


class PolicyCreate(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=3)
    description: Optional[str] = None
    resources: List[str] = Field(..., min_length=1)
    actions: List[str] = Field(..., min_length=1)
    conditions: List[Condition] = Field(default_factory=list)
    effect: PolicyEffect
    status: Status = Status.ACTIVE


# ── Evaluation types ────────────────────────────────────────────


class UserAttributes(BaseModel):
    role: str
    factory_id: ConditionValue = None
    organization_id: ConditionValue = None
    department: ConditionValue = None
    location: ConditionValue = None
    clearance_level: ConditionValue = "standard"


class UserRecord(BaseModel):
    """What the user directory knows about an authenticated user"""
    model_config = ConfigDict(extra="ignore")

    id: str
    role: str
    # Attributes keep their stored kind so conditions compare them without coercion
    factory_id: ConditionValue = None
    organization_id: ConditionValue = None
    department: ConditionValue = None
    location: ConditionValue = None
    clearance_level: ConditionValue = "standard"

    @field_validator("clearance_level", mode="before")
    @classmethod
    def default_clearance(cls, value):
        if value is None or value == "":
            return "standard"
        return value

    @property
    def attributes(self) -> UserAttributes:
        return UserAttributes(**self.model_dump(exclude={"id"}))


class AccessRequest(BaseModel):
    user_id: str
    resource: str
    action: str
    context: Dict[str, Any] = Field(default_factory=dict)
    requested_fields: Optional[List[str]] = None


class AccessDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: str
    unauthorized_fields: Optional[List[str]] = None
    policy_id: Optional[str] = None


class FieldCheckResult(BaseModel):
    allowed: bool
    fields: List[str] = Field(default_factory=list)
    unauthorized_fields: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


class ConfigSnapshot(BaseModel):
    roles: List[Role]
    permissions: List[Permission]
    policies: List[Policy]
    role_hierarchy: Dict[str, List[str]] = Field(default_factory=dict)
    field_permissions: Dict[str, List[str]] = Field(default_factory=dict)
    exported_at: datetime = Field(default_factory=utc_now)
