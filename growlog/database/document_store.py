"""
Document store adapter.

Repositories talk to a DocumentStore through collection handles; the
Supabase implementation maps each collection onto a PostgREST table.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional
import logging

import httpx
from postgrest import APIError
from supabase import AsyncClient

from growlog.core.exceptions import DuplicateKeyError, StoreOperationError, StoreUnavailable

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
NO_ROWS = "204"
INVALID_TEXT_REPRESENTATION = "22P02"


class ServerTimestamp:
    """Marker for a field the store must fill in with its own clock."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = ServerTimestamp()


class DocumentStore(ABC):
    """Minimal async contract the repositories need from a document database."""

    @abstractmethod
    async def insert(self, collection: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert a document and return it as stored, including its id."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document with this id, or None."""

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Return documents whose fields equal every value in filters."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """Update one document; match adds equality conditions. Returns rows written."""

    @abstractmethod
    async def delete(
        self,
        collection: str,
        doc_id: str,
        match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """Delete one document; match adds equality conditions. Returns rows deleted."""

    def collection(self, name: str) -> "CollectionRef":
        return CollectionRef(self, name)


class CollectionRef:
    """Handle on a single collection of a DocumentStore."""

    def __init__(self, store: DocumentStore, name: str):
        self.store = store
        self.name = name

    async def add(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return await self.store.insert(self.name, data)

    async def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        return await self.store.get(self.name, doc_id)

    async def find(self, **kwargs: Any) -> List[Dict[str, Any]]:
        return await self.store.find(self.name, **kwargs)

    async def update(self, doc_id: str, data: Mapping[str, Any], match: Optional[Mapping[str, Any]] = None) -> int:
        return await self.store.update(self.name, doc_id, data, match=match)

    async def delete(self, doc_id: str, match: Optional[Mapping[str, Any]] = None) -> int:
        return await self.store.delete(self.name, doc_id, match=match)

    def __repr__(self) -> str:
        return f"CollectionRef({self.name!r})"


def _translate_error(exc: Exception, action: str, collection: str) -> Exception:
    details = {"collection": collection, "action": action}
    if isinstance(exc, APIError):
        details["code"] = exc.code
        if exc.code == UNIQUE_VIOLATION:
            return DuplicateKeyError(f"Duplicate key in {collection}: {exc.message}", details)
        return StoreOperationError(f"Store rejected {action} on {collection}: {exc.message}", details)
    if isinstance(exc, httpx.TransportError):
        return StoreUnavailable(f"Store unreachable during {action} on {collection}: {exc}", details)
    return StoreOperationError(f"Unexpected store failure during {action} on {collection}: {exc}", details)


class SupabaseDocumentStore(DocumentStore):
    """DocumentStore backed by a Supabase (PostgREST) async client."""

    def __init__(self, client: AsyncClient):
        self.client = client

    @staticmethod
    def _prepare(data: Mapping[str, Any]) -> Dict[str, Any]:
        # Postgres resolves 'now()' with the database clock
        return {k: ("now()" if v is SERVER_TIMESTAMP else v) for k, v in data.items()}

    async def insert(self, collection: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            result = await self.client.table(collection).insert(self._prepare(data)).execute()
        except Exception as e:
            raise _translate_error(e, "insert", collection) from e
        if not result.data:
            raise StoreOperationError(f"Insert into {collection} returned no row", {"collection": collection})
        return result.data[0]

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = await self.client.table(collection)\
                .select("*")\
                .eq("id", doc_id)\
                .maybe_single()\
                .execute()
        except APIError as e:
            # Older postgrest clients report an empty maybe_single as 204;
            # an id that is not a valid uuid cannot name any row either
            if e.code in (NO_ROWS, INVALID_TEXT_REPRESENTATION):
                return None
            raise _translate_error(e, "get", collection) from e
        except Exception as e:
            raise _translate_error(e, "get", collection) from e
        if result is None or not result.data:
            return None
        return result.data

    async def find(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        try:
            query = self.client.table(collection).select("*")
            for field, value in (filters or {}).items():
                query = query.eq(field, value)
            if order_by:
                query = query.order(order_by, desc=descending)
            if limit is not None:
                query = query.limit(limit)
            result = await query.execute()
        except Exception as e:
            raise _translate_error(e, "find", collection) from e
        return list(result.data or [])

    async def update(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        try:
            query = self.client.table(collection)\
                .update(self._prepare(data))\
                .eq("id", doc_id)
            for field, value in (match or {}).items():
                query = query.eq(field, value)
            result = await query.execute()
        except APIError as e:
            if e.code == INVALID_TEXT_REPRESENTATION:
                return 0
            raise _translate_error(e, "update", collection) from e
        except Exception as e:
            raise _translate_error(e, "update", collection) from e
        return len(result.data or [])

    async def delete(
        self,
        collection: str,
        doc_id: str,
        match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        try:
            query = self.client.table(collection)\
                .delete()\
                .eq("id", doc_id)
            for field, value in (match or {}).items():
                query = query.eq(field, value)
            result = await query.execute()
        except APIError as e:
            if e.code == INVALID_TEXT_REPRESENTATION:
                return 0
            raise _translate_error(e, "delete", collection) from e
        except Exception as e:
            raise _translate_error(e, "delete", collection) from e
        return len(result.data or [])
