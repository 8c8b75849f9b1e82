"""
Remote store capability over MongoDB.

The service depends only on the RemoteStore shape: select/insert/update/
delete over named tables (collections) with simple equality or membership
filters. Every backend failure surfaces as RemoteStoreError. Calls block,
so async callers run them through asyncio.to_thread.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import Settings
from errors import RemoteStoreError

logger = logging.getLogger(__name__)

Filters = Mapping[str, Any]
Order = Sequence[Tuple[str, bool]]


class RemoteStore(Protocol):
    def select(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        filters: Optional[Filters] = None,
        order: Optional[Order] = None,
    ) -> List[Dict[str, Any]]: ...

    def insert(self, table: str, payload: Mapping[str, Any]) -> Dict[str, Any]: ...

    def update(self, table: str, payload: Mapping[str, Any], filters: Filters) -> Optional[Dict[str, Any]]: ...

    def delete(self, table: str, filters: Filters) -> Optional[Dict[str, Any]]: ...

    def collection_names(self) -> List[str]: ...


def _to_query(filters: Optional[Filters]) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    for key, value in (filters or {}).items():
        if isinstance(value, (list, tuple, set, frozenset)):
            query[key] = {"$in": list(value)}
        else:
            query[key] = value
    return query


def _to_projection(columns: Optional[Sequence[str]]) -> Dict[str, int]:
    projection = {column: 1 for column in columns or ()}
    projection["_id"] = 0
    return projection


class MongoRemoteStore:
    def __init__(self, db: Database):
        self.db = db

    def select(self, table, columns=None, filters=None, order=None):
        try:
            cursor = self.db[table].find(_to_query(filters), _to_projection(columns))
            if order:
                cursor = cursor.sort([(field, ASCENDING if ascending else DESCENDING) for field, ascending in order])
            return list(cursor)
        except PyMongoError as e:
            raise RemoteStoreError(f"select from {table} failed: {e}") from e

    def insert(self, table, payload):
        now = datetime.now(timezone.utc)
        document = dict(payload)
        document.setdefault("created_at", now)
        document.setdefault("updated_at", now)
        try:
            self.db[table].insert_one(document)
        except PyMongoError as e:
            raise RemoteStoreError(f"insert into {table} failed: {e}") from e
        document.pop("_id", None)
        return document

    def update(self, table, payload, filters):
        changes = dict(payload)
        changes["updated_at"] = datetime.now(timezone.utc)
        try:
            return self.db[table].find_one_and_update(
                _to_query(filters),
                {"$set": changes},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise RemoteStoreError(f"update of {table} failed: {e}") from e

    def delete(self, table, filters):
        try:
            return self.db[table].find_one_and_delete(_to_query(filters), projection={"_id": 0})
        except PyMongoError as e:
            raise RemoteStoreError(f"delete from {table} failed: {e}") from e

    def collection_names(self):
        try:
            return self.db.list_collection_names()
        except PyMongoError as e:
            raise RemoteStoreError(f"listing collections failed: {e}") from e


class UnconfiguredRemoteStore:
    """Stand-in used when DATABASE_URL / DATABASE_NAME are not set."""

    def _fail(self, *args, **kwargs):
        raise RemoteStoreError("Database not configured")

    select = insert = update = delete = collection_names = _fail


def create_remote_store(settings: Settings):
    if not settings.database_configured:
        logger.warning("DATABASE_URL or DATABASE_NAME not set; serving from memory only")
        return UnconfiguredRemoteStore()
    client = MongoClient(settings.database_url, serverSelectionTimeoutMS=5000, tz_aware=True)
    logger.info(f"Using MongoDB database '{settings.database_name}'")
    return MongoRemoteStore(client[settings.database_name])
