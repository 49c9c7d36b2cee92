"""
Built-in field allow-lists and the descriptive role hierarchy.

ROLE_HIERARCHY is metadata only: permission resolution never expands a role
into the roles listed under it.
"""

WILDCARD = "*"

DEFAULT_FIELD_PERMISSIONS: dict[str, list[str]] = {
    "super_admin": [WILDCARD],
    "factory_admin": [WILDCARD],
    "hr_staff": ["name", "email", "department", "role", "status"],
    "auditor": ["name", "email", "department", "role", "status"],
    "grievance_committee": ["name", "email", "department", "role", "status"],
    "worker": ["name", "email", "department"],
}

ROLE_HIERARCHY: dict[str, list[str]] = {
    "super_admin": ["factory_admin", "hr_staff", "auditor", "grievance_committee", "worker"],
    "factory_admin": ["hr_staff", "worker"],
    "hr_staff": ["worker"],
    "auditor": [],
    "grievance_committee": [],
    "worker": [],
}
