from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse

from accessgate.core.access_control.engine import AccessEvaluator
from accessgate.core.access_control.models import (
    PermissionCreate,
    PolicyCreate,
    RoleCreate,
    RoleUpdate,
)
from accessgate.core.dependencies import get_evaluator
from accessgate.utils.helpers import success_response

admin = APIRouter()


@admin.post("/roles")
async def create_role(
    role_data: RoleCreate,
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    role = await evaluator.create_role(role_data)
    return success_response(data=role.model_dump(mode="json"), code=status.HTTP_201_CREATED)


@admin.patch("/roles/{role_id}")
async def update_role(
    role_id: str,
    patch: RoleUpdate,
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    role = await evaluator.update_role(role_id, patch)
    return success_response(data=role.model_dump(mode="json"))


@admin.post("/permissions")
async def create_permission(
    permission_data: PermissionCreate,
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    permission = await evaluator.create_permission(permission_data)
    return success_response(
        data=permission.model_dump(mode="json"), code=status.HTTP_201_CREATED
    )


@admin.post("/policies")
async def create_policy(
    policy_data: PolicyCreate,
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    """
    Append a policy. It is evaluated after every policy registered before it.
    """
    policy = await evaluator.create_policy(policy_data)
    return success_response(data=policy.model_dump(mode="json"), code=status.HTTP_201_CREATED)


@admin.get("/export")
async def export_config(
    format: str = Query("json", pattern="^(json|csv)$"),
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    exported = evaluator.export_config(format)
    if format == "csv":
        return PlainTextResponse(exported, media_type="text/csv")
    return success_response(data=exported.model_dump(mode="json"))
