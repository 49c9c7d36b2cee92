from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from accessgate.utils.logger import Logger
from .settings import AccessSettings

db_logger = Logger(__name__)


class DatabaseManager:
    """Owns the motor client backing the Mongo repositories"""

    def __init__(self, settings: Optional[AccessSettings] = None):
        self.settings = settings or AccessSettings()
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> AsyncIOMotorDatabase:
        if not self.settings.mongodb_uri:
            raise RuntimeError("mongodb_uri is required for the mongo storage backend")

        self.client = AsyncIOMotorClient(self.settings.mongodb_uri)
        self.database = self.client[self.settings.database_name]
        await self.client.admin.command("ping")
        db_logger.info(f"Connected to MongoDB database '{self.settings.database_name}'")
        return self.database

    def close(self):
        if self.client:
            self.client.close()
            db_logger.info("Database connection closed")
