"""
Document store backends

Two interchangeable backends sit behind the same interface:
- MongoDocumentStore: MongoDB through pymongo's async client
- InMemoryDocumentStore: process-local collections selected with a memory:// URL

Both follow BSON semantics for the values they hand back: documents are
copies, ids are ObjectIds and datetimes are naive UTC at millisecond precision.
"""

import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from bson import ObjectId
from pymongo import AsyncMongoClient
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError

logger = logging.getLogger(__name__)

DocumentId = Union[str, ObjectId]


class DocumentStoreError(Exception):
    """Raised when the backing store rejects or fails an operation"""


class DuplicateDocumentError(DocumentStoreError):
    """Raised when an insert reuses an existing _id"""


def to_object_id(document_id: DocumentId) -> Optional[ObjectId]:
    """Coerce an id to ObjectId, or None when it cannot name any document"""
    if isinstance(document_id, ObjectId):
        return document_id
    if isinstance(document_id, str) and ObjectId.is_valid(document_id):
        return ObjectId(document_id)
    return None


class DocumentCollection(ABC):
    """Operations on one named collection"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def insert_one(self, document: Dict[str, Any]) -> ObjectId:
        ...

    @abstractmethod
    async def insert_many(self, documents: List[Dict[str, Any]]) -> List[ObjectId]:
        """Insert a batch; either every document is committed or none is"""

    @abstractmethod
    async def find(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def find_one(self, filters: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        ...

    async def find_by_id(self, document_id: DocumentId) -> Optional[Dict[str, Any]]:
        """Look a document up by id; unknown and malformed ids both give None"""
        object_id = to_object_id(document_id)
        if object_id is None:
            return None
        return await self.find_one({"_id": object_id})

    @abstractmethod
    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        ...

    @abstractmethod
    async def update_by_id(self, document_id: DocumentId, fields: Dict[str, Any]) -> bool:
        """Set the given top-level fields; returns False when nothing matched"""

    @abstractmethod
    async def delete_by_id(self, document_id: DocumentId) -> bool:
        """Remove one document; returns False when nothing matched"""


class DocumentStore(ABC):
    """A database of named collections"""

    def __init__(self, database_name: str):
        self.database_name = database_name

    @abstractmethod
    async def connect(self):
        ...

    @abstractmethod
    async def close(self):
        ...

    @abstractmethod
    async def ping(self) -> bool:
        ...

    @abstractmethod
    def collection(self, name: str) -> DocumentCollection:
        ...

    @abstractmethod
    async def drop_database(self):
        """Remove every collection and document in this database"""


# === MongoDB ===

class MongoDocumentCollection(DocumentCollection):
    """Collection backed by a pymongo AsyncCollection"""

    def __init__(self, collection):
        super().__init__(collection.name)
        self._collection = collection

    async def insert_one(self, document: Dict[str, Any]) -> ObjectId:
        try:
            result = await self._collection.insert_one(document)
        except DuplicateKeyError as e:
            raise DuplicateDocumentError(str(e)) from e
        except PyMongoError as e:
            raise DocumentStoreError(f"insert_one into {self.name} failed: {e}") from e
        return result.inserted_id

    async def insert_many(self, documents: List[Dict[str, Any]]) -> List[ObjectId]:
        if not documents:
            return []
        # Ids are fixed up front so a batch that fails partway can be rolled back
        for document in documents:
            document.setdefault("_id", ObjectId())
        try:
            result = await self._collection.insert_many(documents, ordered=True)
        except BulkWriteError as e:
            # Ordered inserts stop at the first failure, so exactly the prefix was written
            inserted = e.details.get("nInserted", 0)
            await self._rollback([doc["_id"] for doc in documents[:inserted]])
            write_errors = e.details.get("writeErrors", [])
            if any(error.get("code") == 11000 for error in write_errors):
                raise DuplicateDocumentError(f"Duplicate _id in batch insert into {self.name}") from e
            raise DocumentStoreError(f"insert_many into {self.name} failed: {e}") from e
        except PyMongoError as e:
            # Unknown how much of the batch landed before the failure
            await self._rollback([doc["_id"] for doc in documents])
            raise DocumentStoreError(f"insert_many into {self.name} failed: {e}") from e
        return list(result.inserted_ids)

    async def _rollback(self, written_ids: List[ObjectId]):
        if not written_ids:
            return
        logger.warning(f"Rolling back {len(written_ids)} documents from failed batch insert into {self.name}")
        try:
            await self._collection.delete_many({"_id": {"$in": written_ids}})
        except PyMongoError as e:
            raise DocumentStoreError(f"Rollback of failed batch insert into {self.name} failed: {e}") from e

    async def find(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        cursor = self._collection.find(filters or {})
        return await cursor.to_list(length=None)

    async def find_one(self, filters: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        return await self._collection.find_one(filters or {})

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        return await self._collection.count_documents(filters or {})

    async def update_by_id(self, document_id: DocumentId, fields: Dict[str, Any]) -> bool:
        object_id = to_object_id(document_id)
        if object_id is None:
            return False
        result = await self._collection.update_one({"_id": object_id}, {"$set": fields})
        return result.matched_count == 1

    async def delete_by_id(self, document_id: DocumentId) -> bool:
        object_id = to_object_id(document_id)
        if object_id is None:
            return False
        result = await self._collection.delete_one({"_id": object_id})
        return result.deleted_count == 1


class MongoDocumentStore(DocumentStore):
    """MongoDB database reached through AsyncMongoClient"""

    def __init__(self, url: str, default_database: str = "blog-app"):
        self.url = url
        self.client = AsyncMongoClient(url, tz_aware=False)
        database = self.client.get_default_database(default=default_database)
        super().__init__(database.name)
        self._database = database

    async def connect(self):
        # AsyncMongoClient connects lazily; ping surfaces a bad URL at startup
        await self._database.command("ping")

    async def close(self):
        await self.client.close()

    async def ping(self) -> bool:
        try:
            await self._database.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"MongoDB ping failed: {e}")
            return False

    def collection(self, name: str) -> DocumentCollection:
        return MongoDocumentCollection(self._database[name])

    async def drop_database(self):
        await self.client.drop_database(self.database_name)


# === In-memory ===

def _bson_datetime(value: datetime) -> datetime:
    """Store datetimes the way BSON does: UTC, naive, millisecond precision"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _to_stored(value: Any) -> Any:
    if isinstance(value, datetime):
        return _bson_datetime(value)
    if isinstance(value, dict):
        return {key: _to_stored(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_stored(item) for item in value]
    return copy.deepcopy(value)


_MISSING = object()


def _lookup(document: Dict[str, Any], path: str) -> Any:
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _matches(document: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    """Equality matching on top-level or dotted field paths"""
    for path, expected in filters.items():
        actual = _lookup(document, path)
        if isinstance(expected, dict) and "$in" in expected:
            if actual is _MISSING or actual not in expected["$in"]:
                return False
        elif actual is _MISSING or actual != _to_stored(expected):
            return False
    return True


class InMemoryDocumentCollection(DocumentCollection):
    """Insertion-ordered collection held in a dict keyed by ObjectId"""

    def __init__(self, name: str):
        super().__init__(name)
        self._documents: Dict[ObjectId, Dict[str, Any]] = {}

    def clear(self):
        self._documents.clear()

    def _prepare(self, document: Dict[str, Any]) -> Dict[str, Any]:
        # Mirror pymongo: the caller's dict gains the generated _id
        if "_id" not in document:
            document["_id"] = ObjectId()
        return _to_stored(document)

    async def insert_one(self, document: Dict[str, Any]) -> ObjectId:
        stored = self._prepare(document)
        if stored["_id"] in self._documents:
            raise DuplicateDocumentError(f"E11000 duplicate key error collection: {self.name} _id: {stored['_id']}")
        self._documents[stored["_id"]] = stored
        return stored["_id"]

    async def insert_many(self, documents: List[Dict[str, Any]]) -> List[ObjectId]:
        batch = [self._prepare(document) for document in documents]
        seen = set(self._documents)
        for stored in batch:
            if stored["_id"] in seen:
                raise DuplicateDocumentError(f"E11000 duplicate key error collection: {self.name} _id: {stored['_id']}")
            seen.add(stored["_id"])
        for stored in batch:
            self._documents[stored["_id"]] = stored
        return [stored["_id"] for stored in batch]

    async def find(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._documents.values() if _matches(doc, filters or {})]

    async def find_one(self, filters: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        for doc in self._documents.values():
            if _matches(doc, filters or {}):
                return copy.deepcopy(doc)
        return None

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        return sum(1 for doc in self._documents.values() if _matches(doc, filters or {}))

    async def update_by_id(self, document_id: DocumentId, fields: Dict[str, Any]) -> bool:
        object_id = to_object_id(document_id)
        if object_id is None or object_id not in self._documents:
            return False
        self._documents[object_id].update(_to_stored(fields))
        return True

    async def delete_by_id(self, document_id: DocumentId) -> bool:
        object_id = to_object_id(document_id)
        if object_id is None:
            return False
        return self._documents.pop(object_id, None) is not None


class InMemoryDocumentStore(DocumentStore):
    """Process-local database; dropping it forgets every collection"""

    def __init__(self, database_name: str = "test-blog-app"):
        super().__init__(database_name)
        self._collections: Dict[str, InMemoryDocumentCollection] = {}

    async def connect(self):
        logger.info(f"Using in-memory document store: {self.database_name}")

    async def close(self):
        await self.drop_database()

    async def ping(self) -> bool:
        return True

    def collection(self, name: str) -> DocumentCollection:
        if name not in self._collections:
            self._collections[name] = InMemoryDocumentCollection(name)
        return self._collections[name]

    async def drop_database(self):
        # Collections handed out earlier stay valid and simply come back empty
        for collection in self._collections.values():
            collection.clear()


def create_document_store(url: str) -> DocumentStore:
    """Pick a backend from the URL scheme"""
    parsed = urlparse(url)
    if parsed.scheme == "memory":
        database_name = (parsed.netloc or parsed.path.lstrip("/")) or "test-blog-app"
        return InMemoryDocumentStore(database_name)
    if parsed.scheme in ("mongodb", "mongodb+srv"):
        return MongoDocumentStore(url)
    raise ValueError(f"Unsupported database URL scheme: {parsed.scheme or url}")
