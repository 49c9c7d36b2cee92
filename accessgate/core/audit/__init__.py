from .models import AuditEntry
from .sinks import AuditSink, MongoAuditSink, MemoryAuditSink
from .logger import AccessAuditLogger

__all__ = [
    "AuditEntry",
    "AuditSink",
    "MongoAuditSink",
    "MemoryAuditSink",
    "AccessAuditLogger",
]
