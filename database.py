"""
MongoDB record store.

Each schema in ``schemas.py`` maps to one collection. Documents leave the store
as plain dicts; ``serialize`` turns them into API payloads (``id`` instead of
``_id``).
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import DATABASE_NAME, DATABASE_URL

logger = logging.getLogger("alumni.database")

ALUMNI = "alumni"
FEEDBACK = "feedback"
CAMPAIGN = "campaign"
DONATION = "donation"
NOTIFICATION = "notification"
COLLEGE_INFO = "college_info"
USER = "user"

COLLECTIONS = (ALUMNI, FEEDBACK, CAMPAIGN, DONATION, NOTIFICATION, COLLEGE_INFO, USER)

SINGLETON_KEY = "singleton"

Sort = List[Tuple[str, int]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def serialize(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    for k, v in list(doc.items()):
        if isinstance(v, ObjectId):
            doc[k] = str(v)
        elif isinstance(v, datetime):
            doc[k] = v.isoformat()
    doc.pop(SINGLETON_KEY, None)
    return doc


class RecordStore:
    """Thin CRUD layer over a pymongo ``Database``."""

    def __init__(self, db: Database):
        self.db = db

    @property
    def name(self) -> str:
        return self.db.name

    def collection(self, name: str):
        return self.db[name]

    def ensure_indexes(self) -> None:
        self.db[ALUMNI].create_index("email", unique=True)
        self.db[ALUMNI].create_index("batch")
        self.db[USER].create_index("email", unique=True)
        self.db[CAMPAIGN].create_index("isActive")
        self.db[CAMPAIGN].create_index([("createdAt", DESCENDING)])
        self.db[DONATION].create_index("campaignId")
        self.db[DONATION].create_index("transactionId", unique=True)
        self.db[NOTIFICATION].create_index([("audience", ASCENDING), ("createdAt", DESCENDING)])
        self.db[COLLEGE_INFO].create_index(SINGLETON_KEY, unique=True)
        logger.info("Indexes ensured on %s", self.name)

    def create_document(self, collection_name: str, data: Union[BaseModel, dict]) -> dict:
        if isinstance(data, BaseModel):
            doc = data.model_dump()
        else:
            doc = dict(data)
        now = utcnow()
        doc.setdefault("createdAt", now)
        doc.setdefault("updatedAt", now)
        result = self.db[collection_name].insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def get_documents(
        self,
        collection_name: str,
        filter_dict: Optional[dict] = None,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
        projection: Optional[dict] = None,
    ) -> List[dict]:
        cursor = self.db[collection_name].find(filter_dict or {}, projection)
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def get_document(self, collection_name: str, doc_id: Any) -> Optional[dict]:
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        return self.db[collection_name].find_one({"_id": oid})

    def find_one(self, collection_name: str, filter_dict: dict) -> Optional[dict]:
        return self.db[collection_name].find_one(filter_dict)

    def exists(self, collection_name: str, filter_dict: dict) -> bool:
        return self.db[collection_name].find_one(filter_dict, {"_id": 1}) is not None

    def count(self, collection_name: str, filter_dict: Optional[dict] = None) -> int:
        return self.db[collection_name].count_documents(filter_dict or {})

    def update_document(self, collection_name: str, doc_id: Any, fields: Dict[str, Any]) -> Optional[dict]:
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        update = {**fields, "updatedAt": utcnow()}
        return self.db[collection_name].find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )

    def update_many(self, collection_name: str, filter_dict: dict, fields: Dict[str, Any]) -> int:
        result = self.db[collection_name].update_many(filter_dict, {"$set": fields})
        return result.modified_count

    def delete_document(self, collection_name: str, doc_id: Any) -> Optional[dict]:
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        return self.db[collection_name].find_one_and_delete({"_id": oid})

    def increment(
        self,
        collection_name: str,
        filter_dict: dict,
        field: str,
        amount: Union[int, float],
    ) -> Optional[dict]:
        """
        Atomically add ``amount`` to ``field`` on the single document matching
        ``filter_dict``. Returns the updated document, or None when nothing
        matched the filter.
        """
        return self.db[collection_name].find_one_and_update(
            filter_dict,
            {"$inc": {field: amount}, "$set": {"updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def claim_flag(self, collection_name: str, doc_id: Any, flag: str) -> bool:
        """Set a boolean flag to True; True only for the caller that flipped it."""
        oid = to_object_id(doc_id)
        if oid is None:
            return False
        result = self.db[collection_name].update_one(
            {"_id": oid, flag: {"$ne": True}}, {"$set": {flag: True}}
        )
        return result.modified_count == 1

    def toggle(self, collection_name: str, doc_id: Any, field: str, attempts: int = 5) -> Optional[dict]:
        """
        Flip a boolean field with a compare-and-swap update. Returns the
        updated document, or None when the document does not exist.
        """
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        coll = self.db[collection_name]
        for _ in range(attempts):
            current = coll.find_one({"_id": oid}, {field: 1})
            if current is None:
                return None
            value = bool(current.get(field, False))
            updated = coll.find_one_and_update(
                {"_id": oid, field: current.get(field)},
                {"$set": {field: not value, "updatedAt": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
            if updated is not None:
                return updated
            logger.debug("Concurrent change on %s/%s.%s, retrying toggle", collection_name, oid, field)
        raise PyMongoError(f"Could not toggle {field} on {collection_name}/{oid}")

    def get_singleton(self, collection_name: str) -> Optional[dict]:
        return self.db[collection_name].find_one({SINGLETON_KEY: True})

    def upsert_singleton(
        self,
        collection_name: str,
        fields: Dict[str, Any],
        defaults: Optional[Dict[str, Any]] = None,
    ) -> dict:
        """
        Set ``fields`` on the singleton document, creating it on first write.

        ``defaults`` are only written when the document is inserted, so a
        partial update never resets fields it does not name.
        """
        now = utcnow()
        skip = ("_id", "id", "createdAt", "updatedAt", SINGLETON_KEY)
        update = {k: v for k, v in fields.items() if k not in skip}
        update["updatedAt"] = now
        on_insert = {k: v for k, v in (defaults or {}).items() if k not in skip and k not in update}
        on_insert["createdAt"] = now
        return self.db[collection_name].find_one_and_update(
            {SINGLETON_KEY: True},
            {"$set": update, "$setOnInsert": on_insert},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    def ping(self) -> bool:
        self.db.command("ping")
        return True


_client: Optional[MongoClient] = None
_store: Optional[RecordStore] = None


def get_store() -> RecordStore:
    """FastAPI dependency returning the process-wide store."""
    global _client, _store
    if _store is None:
        _client = MongoClient(DATABASE_URL)
        _store = RecordStore(_client[DATABASE_NAME])
        logger.info("Connected store to database '%s'", DATABASE_NAME)
    return _store
