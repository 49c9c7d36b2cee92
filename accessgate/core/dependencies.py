from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from accessgate.core.access_control.engine import AccessEvaluator
from accessgate.core.access_control.memory import (
    MemoryPermissionRepository,
    MemoryPolicyRepository,
    MemoryRoleRepository,
    MemoryUserDirectory,
)
from accessgate.core.access_control.repositories import (
    MongoPermissionRepository,
    MongoPolicyRepository,
    MongoRoleRepository,
    MongoUserDirectory,
)
from accessgate.core.audit.sinks import MemoryAuditSink, MongoAuditSink
from accessgate.core.config.settings import AccessSettings
from accessgate.core.grievances.service import GrievanceService
from accessgate.core.grievances.stores import MemoryGrievanceStore, MongoGrievanceStore


def build_memory_evaluator(settings: AccessSettings) -> AccessEvaluator:
    return AccessEvaluator(
        user_directory=MemoryUserDirectory(),
        role_repository=MemoryRoleRepository(),
        permission_repository=MemoryPermissionRepository(),
        policy_repository=MemoryPolicyRepository(),
        audit_sink=MemoryAuditSink(),
        settings=settings,
    )


def build_mongo_evaluator(settings: AccessSettings, db: AsyncIOMotorDatabase) -> AccessEvaluator:
    return AccessEvaluator(
        user_directory=MongoUserDirectory(db, settings.users_collection),
        role_repository=MongoRoleRepository(db, settings.roles_collection),
        permission_repository=MongoPermissionRepository(db, settings.permissions_collection),
        policy_repository=MongoPolicyRepository(db, settings.policies_collection),
        audit_sink=MongoAuditSink(db, settings.audit_collection),
        settings=settings,
    )


def build_evaluator(
    settings: AccessSettings, db: Optional[AsyncIOMotorDatabase] = None
) -> AccessEvaluator:
    if settings.storage_backend == "memory":
        return build_memory_evaluator(settings)
    if settings.storage_backend == "mongo":
        if db is None:
            raise ValueError("A database is required for the mongo storage backend")
        return build_mongo_evaluator(settings, db)
    raise ValueError(f"Unknown storage backend '{settings.storage_backend}'")


# FastAPI dependency
async def get_evaluator(request: Request) -> AccessEvaluator:
    evaluator = getattr(request.app.state, "evaluator", None)
    if evaluator is None or not evaluator.is_initialized:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Access evaluator is not initialized",
        )
    return evaluator


def build_grievance_service(
    settings: AccessSettings,
    evaluator: AccessEvaluator,
    db: Optional[AsyncIOMotorDatabase] = None,
) -> GrievanceService:
    if settings.storage_backend == "mongo":
        store = MongoGrievanceStore(
            db, settings.grievance_cases_collection, settings.grievance_notes_collection
        )
    else:
        store = MemoryGrievanceStore()
    return GrievanceService(evaluator, store)


async def get_grievance_service(
    request: Request, evaluator: AccessEvaluator = Depends(get_evaluator)
) -> GrievanceService:
    """Served only once the evaluator behind it is initialized"""
    return request.app.state.grievances
