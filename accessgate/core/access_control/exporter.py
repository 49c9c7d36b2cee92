import csv
import io
import json
from typing import Dict, List

from .models import ConfigSnapshot

CSV_FIELDS = [
    "entity_type",
    "id",
    "name",
    "description",
    "status",
    "resource",
    "action",
    "resources",
    "actions",
    "effect",
    "permission_ids",
    "conditions",
]

LIST_SEPARATOR = ";"


def _conditions(conditions) -> str:
    if not conditions:
        return ""
    return json.dumps([c.model_dump(mode="json") for c in conditions])


def snapshot_rows(snapshot: ConfigSnapshot) -> List[Dict[str, str]]:
    """Flatten a snapshot into one row per role, permission and policy"""
    rows = []
    for role in snapshot.roles:
        rows.append({
            "entity_type": "role",
            "id": role.id,
            "name": role.name,
            "description": role.description or "",
            "status": role.status.value,
            "permission_ids": LIST_SEPARATOR.join(role.permission_ids),
        })
    for permission in snapshot.permissions:
        rows.append({
            "entity_type": "permission",
            "id": permission.id,
            "name": permission.name,
            "description": permission.description or "",
            "resource": permission.resource,
            "action": permission.action,
            "conditions": _conditions(permission.conditions),
        })
    for policy in snapshot.policies:
        rows.append({
            "entity_type": "policy",
            "id": policy.id,
            "name": policy.name,
            "description": policy.description or "",
            "status": policy.status.value,
            "resources": LIST_SEPARATOR.join(policy.resources),
            "actions": LIST_SEPARATOR.join(policy.actions),
            "effect": policy.effect.value,
            "conditions": _conditions(policy.conditions),
        })
    return rows


def snapshot_to_csv(snapshot: ConfigSnapshot) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, restval="")
    writer.writeheader()
    writer.writerows(snapshot_rows(snapshot))
    return buffer.getvalue()
