from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, timezone

from bson import ObjectId
from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from config import Settings

ADMINS = "admin"
USERS = "user"
COURSES = "course"

# Fields that hold references to other collections
REFERENCE_FIELDS = ("creator", "students", "courses", "cart", "purchased_courses")


def create_client(settings: Settings) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.DATABASE_URL)


def get_db(request: Request) -> AsyncIOMotorDatabase:
    return request.app.state.db


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    # Unique email and username per actor type
    for collection_name in (ADMINS, USERS):
        await db[collection_name].create_index("email", unique=True)
        await db[collection_name].create_index("username", unique=True)
    await db[COURSES].create_index([("creator", 1)])


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Return the ObjectId for ``value``, or None when it is not a valid id."""
    if not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def to_public(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Expose ``_id`` as ``id`` and render stored references as strings."""
    if doc is None:
        return doc
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    for field in REFERENCE_FIELDS:
        value = d.get(field)
        if isinstance(value, ObjectId):
            d[field] = str(value)
        elif isinstance(value, list):
            d[field] = [str(v) for v in value]
    return d


async def create_document(db: AsyncIOMotorDatabase, collection_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    data_to_insert = {"created_at": now, **data, "updated_at": now}
    result = await db[collection_name].insert_one(data_to_insert)
    inserted = await db[collection_name].find_one({"_id": result.inserted_id})
    return inserted or {}


async def get_documents(db: AsyncIOMotorDatabase, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    filter_dict = filter_dict or {}
    cursor = db[collection_name].find(filter_dict).sort("created_at", 1)
    docs: List[Dict[str, Any]] = []
    async for doc in cursor:
        docs.append(doc)
    return docs


async def resolve_references(db: AsyncIOMotorDatabase, collection_name: str, ids: Iterable[ObjectId]) -> List[Dict[str, Any]]:
    """
    Load the documents referenced by ``ids``, keeping the order (and any
    repeats) of the reference list. References to deleted documents are
    dropped.
    """
    ids = list(ids)
    if not ids:
        return []
    found: Dict[ObjectId, Dict[str, Any]] = {}
    async for doc in db[collection_name].find({"_id": {"$in": ids}}):
        found[doc["_id"]] = doc
    return [found[i] for i in ids if i in found]
