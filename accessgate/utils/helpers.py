from datetime import datetime
from typing import Any

from bson import ObjectId
from fastapi.responses import JSONResponse


def serialize_mongo_doc(value: Any) -> Any:
    """Recursively turn ObjectIds into strings and datetimes into ISO text."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: serialize_mongo_doc(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_mongo_doc(item) for item in value]
    return value


def parse_document_id(id_str: str):
    """Use an ObjectId when the string is one, the raw string otherwise."""
    if ObjectId.is_valid(id_str):
        return ObjectId(id_str)
    return id_str


def success_response(data: Any = None, code: int = 200) -> JSONResponse:
    """`{success, data}` envelope shared by every route"""
    return JSONResponse(status_code=code, content={"success": True, "data": data})


def error_response(message: str, code: int = 500) -> JSONResponse:
    return JSONResponse(
        status_code=code,
        content={"success": False, "error": {"code": code, "message": message}},
    )
