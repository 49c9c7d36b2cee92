from typing import Dict, List, Optional

from pydantic_settings import BaseSettings


class AccessSettings(BaseSettings):
    """Access engine settings loaded from the environment / .env file."""

    # ── Application ──────────────────────────────────────────────
    app_name: str = "Accessgate Decision Engine"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    api_version: str = "v1"

    # ── Storage ──────────────────────────────────────────────────
    storage_backend: str = "mongo"  # "mongo" or "memory"
    mongodb_uri: Optional[str] = None
    database_name: str = "accessgate_db"
    users_collection: str = "users"
    roles_collection: str = "roles"
    permissions_collection: str = "permissions"
    policies_collection: str = "policies"
    audit_collection: str = "access_logs"
    grievance_cases_collection: str = "grievance_cases"
    grievance_notes_collection: str = "grievance_notes"

    # ── Evaluation ───────────────────────────────────────────────
    user_lookup_timeout_seconds: float = 5.0
    field_permissions: Optional[Dict[str, List[str]]] = None

    # ── Audit ────────────────────────────────────────────────────
    audit_fire_and_forget: bool = True
    audit_denials: bool = False

    # ── CORS ─────────────────────────────────────────────────────
    cors_allowed_origins: list[str] = [
        "http://localhost:4200",
        "http://127.0.0.1:4200",
    ]
    cors_allow_credentials: bool = True
    cors_allowed_methods: list[str] = ["*"]
    cors_allowed_headers: list[str] = ["*"]

    class Config:
        env_file = ".env"
        extra = "ignore"


# ── Module-level singleton ──────────────────────────────────────
settings = AccessSettings()
