"""
Collaborator contracts consumed by the access engine, plus their MongoDB
implementations.

Documents are stored with ``_id`` set to the entity id and are listed in
``created_at`` order so that policy evaluation order survives a restart.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as PydanticValidationError
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from accessgate.utils.exceptions import NotFoundError, RepositoryError
from accessgate.utils.helpers import parse_document_id, serialize_mongo_doc
from accessgate.utils.logger import Logger
from .models import Permission, Policy, Role, UserRecord

repo_logger = Logger(__name__)


class UserDirectory(ABC):
    """Resolves an authenticated user id to a role and attributes"""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        pass


class RoleRepository(ABC):
    @abstractmethod
    async def list(self) -> List[Role]:
        pass

    @abstractmethod
    async def create(self, role: Role) -> None:
        pass

    @abstractmethod
    async def update(self, role_id: str, patch: Dict[str, Any]) -> None:
        pass


class PermissionRepository(ABC):
    @abstractmethod
    async def list(self) -> List[Permission]:
        pass

    @abstractmethod
    async def create(self, permission: Permission) -> None:
        pass


class PolicyRepository(ABC):
    @abstractmethod
    async def list(self) -> List[Policy]:
        pass

    @abstractmethod
    async def create(self, policy: Policy) -> None:
        pass


# ── MongoDB implementations ─────────────────────────────────────


def _to_document(model) -> Dict[str, Any]:
    doc = model.model_dump(mode="python")
    doc["_id"] = doc.pop("id")
    return doc


def _from_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    return data


class _MongoCollection:
    model = None

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str):
        self.db = db
        self.collection = db[collection_name]
        self.collection_name = collection_name

    async def _list(self):
        try:
            cursor = self.collection.find({}).sort([("created_at", ASCENDING), ("_id", ASCENDING)])
            docs = [doc async for doc in cursor]
        except PyMongoError as e:
            raise RepositoryError(f"Failed to list {self.collection_name}: {e}") from e

        try:
            return [self.model(**_from_document(doc)) for doc in docs]
        except PydanticValidationError as e:
            raise RepositoryError(f"Malformed document in {self.collection_name}: {e}") from e

    async def _insert(self, model) -> None:
        try:
            await self.collection.insert_one(_to_document(model))
        except PyMongoError as e:
            raise RepositoryError(f"Failed to write to {self.collection_name}: {e}") from e


class MongoRoleRepository(_MongoCollection, RoleRepository):
    model = Role

    async def list(self) -> List[Role]:
        return await self._list()

    async def create(self, role: Role) -> None:
        await self._insert(role)

    async def update(self, role_id: str, patch: Dict[str, Any]) -> None:
        try:
            result = await self.collection.update_one({"_id": role_id}, {"$set": patch})
        except PyMongoError as e:
            raise RepositoryError(f"Failed to update role {role_id}: {e}") from e

        if result.matched_count == 0:
            raise NotFoundError(f"Role '{role_id}' not found")


class MongoPermissionRepository(_MongoCollection, PermissionRepository):
    model = Permission

    async def list(self) -> List[Permission]:
        return await self._list()

    async def create(self, permission: Permission) -> None:
        await self._insert(permission)


class MongoPolicyRepository(_MongoCollection, PolicyRepository):
    model = Policy

    async def list(self) -> List[Policy]:
        return await self._list()

    async def create(self, policy: Policy) -> None:
        await self._insert(policy)


class MongoUserDirectory(UserDirectory):
    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "users"):
        self.db = db
        self.users = db[collection_name]

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        doc = await self.users.find_one({"_id": parse_document_id(user_id)})
        if not doc:
            return None

        data = serialize_mongo_doc(doc)
        data["id"] = str(data.pop("_id"))
        if not data.get("role"):
            repo_logger.warning(f"User {user_id} has no role assigned")
            return None
        return UserRecord(**data)
