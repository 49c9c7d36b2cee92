from fastapi import APIRouter, Depends

from accessgate.core.access_control.engine import AccessEvaluator
from accessgate.core.access_control.models import AccessRequest
from accessgate.core.dependencies import get_evaluator
from accessgate.utils.helpers import success_response

access = APIRouter()


@access.post("/check", summary="Decide a single access request")
async def check_access(
    access_request: AccessRequest,
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    """
    Evaluate an access request. Denials are returned with status 200; the
    caller translates them into its own protocol response.
    """
    decision = await evaluator.check_request(access_request)
    return success_response(data=decision.model_dump(mode="json"))


@access.get("/roles/{role}/permissions", summary="Permissions assigned to a role")
async def get_role_permissions(
    role: str,
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    permissions = evaluator.get_role_permissions(role)
    return success_response(data=[p.model_dump(mode="json") for p in permissions])


@access.get("/users/{user_id}/permissions", summary="Effective permissions of a user")
async def get_user_permissions(
    user_id: str,
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    permissions = await evaluator.get_user_effective_permissions(user_id)
    return success_response(data=[p.model_dump(mode="json") for p in permissions])
