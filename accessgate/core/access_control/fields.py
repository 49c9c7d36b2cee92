from typing import Dict, Iterable, List, Optional

from .defaults import DEFAULT_FIELD_PERMISSIONS, WILDCARD
from .models import FieldCheckResult


class FieldPermissionFilter:
    """Maps a role to the field names it may request.

    Allow-lists are keyed by role only; the resource is accepted so callers
    can pass it, but every resource shares the role's list.
    """

    def __init__(self, field_permissions: Optional[Dict[str, List[str]]] = None):
        source = DEFAULT_FIELD_PERMISSIONS if field_permissions is None else field_permissions
        self.field_permissions: Dict[str, List[str]] = {
            role: list(fields) for role, fields in source.items()
        }

    def allowed_fields(self, role: str) -> List[str]:
        return self.field_permissions.get(role, [])

    def check_field_permissions(
        self, role: str, resource: str, fields: Optional[Iterable[str]] = None
    ) -> FieldCheckResult:
        requested = list(fields or [])
        allow_list = self.allowed_fields(role)

        if WILDCARD in allow_list:
            return FieldCheckResult(allowed=True, fields=requested)

        unauthorized = [field for field in requested if field not in allow_list]
        if unauthorized:
            return FieldCheckResult(
                allowed=False,
                fields=requested,
                unauthorized_fields=unauthorized,
                reason=f"Unauthorized fields: {', '.join(unauthorized)}",
            )

        return FieldCheckResult(allowed=True, fields=requested)
