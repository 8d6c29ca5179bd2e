"""Shared pytest fixtures: in-memory document store, settings and per-user contexts."""

from __future__ import annotations

import asyncio
import copy
import uuid
from collections import defaultdict
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import pytest

from growlog.config.settings import Settings
from growlog.core.dependencies import get_diary_repository, get_environment_repository, get_plant_repository
from growlog.core.exceptions import DuplicateKeyError
from growlog.core.principal import TokenPrincipal
from growlog.database.document_store import SERVER_TIMESTAMP, DocumentStore
from growlog.database.supabase_client import StoreContext
from growlog.modules.auth.service import clear_auth_cache


class FakeDocumentStore(DocumentStore):
    """
    In-memory DocumentStore.

    Every call yields to the event loop before touching state, so
    concurrent repository calls interleave the way remote round trips do.
    Server timestamps come from a fake clock that ticks one second per
    write and are stored as native datetimes.
    """

    def __init__(
        self,
        unique: Optional[Mapping[str, Iterable[str]]] = None,
        resolve_on_insert: bool = True,
    ) -> None:
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.unique = {name: list(fields) for name, fields in (unique or {}).items()}
        self.resolve_on_insert = resolve_on_insert
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None
        self._clock = datetime(2024, 1, 1, tzinfo=UTC)

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def _enter(self, *call: Any) -> None:
        self.calls.append(call)
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with

    @property
    def writes(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("insert", "update", "delete")]

    def documents(self, collection: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(d) for d in self.collections[collection].values()]

    def _matches(self, document: Mapping[str, Any], match: Optional[Mapping[str, Any]]) -> bool:
        return all(document.get(k) == v for k, v in (match or {}).items())

    async def insert(self, collection: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        await self._enter("insert", collection, dict(data))
        for field in self.unique.get(collection, []):
            if any(d.get(field) == data.get(field) for d in self.collections[collection].values()):
                raise DuplicateKeyError(f"duplicate key value violates unique constraint on {field}")
        doc_id = str(uuid.uuid4())
        stored = {k: (self._now() if v is SERVER_TIMESTAMP else copy.deepcopy(v)) for k, v in data.items()}
        stored["id"] = doc_id
        self.collections[collection][doc_id] = stored
        if self.resolve_on_insert:
            return copy.deepcopy(stored)
        # Simulate a write acknowledgement whose server timestamps are still pending
        return {**copy.deepcopy(stored), **{k: v for k, v in data.items() if v is SERVER_TIMESTAMP}}

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        await self._enter("get", collection, doc_id)
        document = self.collections[collection].get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def find(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        await self._enter("find", collection, dict(filters or {}))
        found = [copy.deepcopy(d) for d in self.collections[collection].values() if self._matches(d, filters)]
        if order_by:
            found.sort(key=lambda d: d[order_by], reverse=descending)
        if limit is not None:
            found = found[:limit]
        return found

    async def update(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        await self._enter("update", collection, doc_id, dict(data))
        document = self.collections[collection].get(doc_id)
        if document is None or not self._matches(document, match):
            return 0
        document.update(copy.deepcopy(dict(data)))
        return 1

    async def delete(
        self,
        collection: str,
        doc_id: str,
        match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        await self._enter("delete", collection, doc_id)
        document = self.collections[collection].get(doc_id)
        if document is None or not self._matches(document, match):
            return 0
        del self.collections[collection][doc_id]
        return 1


@pytest.fixture(autouse=True)
def _reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        supabase_url="http://localhost:54321",
        supabase_key="anon-key",
        supabase_service_role_key="service-role-key",
        photo_analysis_api_key="test-key",
    )


@pytest.fixture()
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture()
def context_for(store: FakeDocumentStore, settings: Settings) -> Callable[[Optional[str]], StoreContext]:
    def _make(user_id: Optional[str]) -> StoreContext:
        return StoreContext(store, TokenPrincipal(user_id), settings)
    return _make


@pytest.fixture()
def environments_for(context_for):
    return lambda user_id: get_environment_repository(context_for(user_id))


@pytest.fixture()
def plants_for(context_for):
    return lambda user_id: get_plant_repository(context_for(user_id))


@pytest.fixture()
def diary_for(context_for):
    return lambda user_id: get_diary_repository(context_for(user_id))
