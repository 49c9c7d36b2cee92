"""
Audit record of an access decision
"""
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class AuditEntry(BaseModel):
    """Append-only record of one access decision"""
    model_config = ConfigDict(frozen=True)

    user_id: str
    resource: str
    action: str
    context: Dict[str, Any] = Field(default_factory=dict)
    allowed: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ip_address: str = "unknown"
    user_agent: str = "unknown"

    @classmethod
    def for_decision(
        cls, user_id: str, resource: str, action: str, context: Dict[str, Any], allowed: bool
    ) -> "AuditEntry":
        return cls(
            user_id=user_id,
            resource=resource,
            action=action,
            context=context,
            allowed=allowed,
            ip_address=str(context.get("ip_address") or "unknown"),
            user_agent=str(context.get("user_agent") or "unknown"),
        )
