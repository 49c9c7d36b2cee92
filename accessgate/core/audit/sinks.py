from abc import ABC, abstractmethod
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from .models import AuditEntry


class AuditSink(ABC):
    """Durable destination for audit entries"""

    @abstractmethod
    async def append(self, entry: AuditEntry) -> None:
        pass


class MongoAuditSink(AuditSink):
    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "access_logs"):
        self.db = db
        self.collection = db[collection_name]

    async def append(self, entry: AuditEntry) -> None:
        await self.collection.insert_one(entry.model_dump(mode="python"))


class MemoryAuditSink(AuditSink):
    def __init__(self):
        self.entries: List[AuditEntry] = []

    async def append(self, entry: AuditEntry) -> None:
        self.entries.append(entry)
