from .helpers import (
    serialize_mongo_doc,
    parse_document_id,
    success_response,
    error_response,
)
from .logger import Logger, set_root_level

__all__ = [
    "serialize_mongo_doc",
    "parse_document_id",
    "success_response",
    "error_response",
    "Logger",
    "set_root_level",
]
