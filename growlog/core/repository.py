"""
Base class for owner-scoped repositories.

Every operation resolves the caller first and refuses to touch the store
without one. Reads hide records owned by someone else exactly as if they
did not exist; updates and deletes re-read the record right before
writing and condition the write on the owner column as well as the id.

Nothing is cached between calls: each operation goes back to the store.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, Type, TypeVar
import logging

from pydantic import BaseModel

from growlog.core.exceptions import (
    GrowlogError, NotFoundOrForbidden, StoreError, StoreOperationError, StoreUnavailable, Unauthenticated
)
from growlog.core.principal import PrincipalResolver
from growlog.database.document_store import SERVER_TIMESTAMP, CollectionRef

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class OwnedRepository(Generic[RecordT]):
    kind: str = "record"
    model: Type[RecordT]
    owner_field: str = "owner_id"
    timestamp_field: str = "created_at"

    def __init__(self, collection: CollectionRef, principal: PrincipalResolver):
        self.collection = collection
        self.principal = principal

    # -- hooks -------------------------------------------------------------

    def normalize(self, document: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(document)

    def to_record(self, document: Mapping[str, Any]) -> RecordT:
        return self.model(**self.normalize(document))

    # -- helpers -----------------------------------------------------------

    def require_principal(self) -> str:
        owner_id = self.principal.current_principal_id()
        if not owner_id:
            logger.warning(f"Refusing {self.kind} operation without an authenticated principal")
            raise Unauthenticated()
        return owner_id

    def _wrap(self, exc: Exception, action: str, record_id: Optional[str]) -> StoreError:
        target = f"{self.kind} {record_id}" if record_id else self.kind
        reason = exc.message if isinstance(exc, GrowlogError) else str(exc)
        details: Dict[str, Any] = {"kind": self.kind, "action": action}
        if record_id:
            details["id"] = record_id
        if isinstance(exc, GrowlogError) and exc.details:
            details["cause"] = dict(exc.details)
        message = f"Failed to {action} {target}: {reason}"
        if isinstance(exc, StoreUnavailable):
            return StoreUnavailable(message, details)
        return StoreOperationError(message, details)

    @contextmanager
    def store_call(self, action: str, record_id: Optional[str] = None) -> Iterator[None]:
        """Re-raise domain errors untouched; wrap everything else with operation context."""
        try:
            yield
        except GrowlogError as e:
            if not isinstance(e, StoreError):
                raise
            # Already logged by the repository call that wrapped it
            if "kind" not in e.details:
                logger.error(f"Error during {action} of {self.kind} {record_id or ''}: {e}")
            raise self._wrap(e, action, record_id) from e
        except Exception as e:
            logger.error(f"Error during {action} of {self.kind} {record_id or ''}: {e}")
            raise self._wrap(e, action, record_id) from e

    async def fetch_owned(self, record_id: str, owner_id: str) -> Optional[Dict[str, Any]]:
        """Raw stored document if it exists and belongs to owner_id, else None."""
        document = await self.collection.get(record_id)
        if document is None:
            logger.info(f"No {self.kind} found for ID: {record_id}")
            return None
        if document.get(self.owner_field) != owner_id:
            logger.warning(
                f"{self.kind.capitalize()} {record_id} found, but owner mismatch. "
                f"Requested by {owner_id}, owned by {document.get(self.owner_field)}."
            )
            return None
        return document

    async def insert_owned(self, owner_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert with owner and store-assigned timestamp; returns the stored document."""
        document = dict(data)
        document[self.owner_field] = owner_id
        document[self.timestamp_field] = SERVER_TIMESTAMP
        stored = await self.collection.add(document)

        if self._unresolved(stored.get(self.timestamp_field)):
            # Some stores only resolve server time on read
            refreshed = await self.collection.get(stored["id"])
            if refreshed is None:
                raise StoreOperationError(f"Failed to fetch the newly created {self.kind} document")
            stored = refreshed
        if self._unresolved(stored.get(self.timestamp_field)):
            logger.warning(f"{self.kind.capitalize()} {stored['id']} has no resolved {self.timestamp_field}; using local time")
            stored = {**stored, self.timestamp_field: datetime.now(timezone.utc)}
        return stored

    @staticmethod
    def _unresolved(value: Any) -> bool:
        return value is None or value is SERVER_TIMESTAMP

    # -- operations --------------------------------------------------------

    async def get_by_id(self, record_id: str) -> Optional[RecordT]:
        """Record by id, or None when absent or owned by someone else."""
        owner_id = self.require_principal()
        logger.info(f"Fetching {self.kind} {record_id} for owner {owner_id}")
        with self.store_call("fetch", record_id):
            document = await self.fetch_owned(record_id, owner_id)
            if document is None:
                return None
            return self.to_record(document)

    async def list_by_owner(self) -> List[RecordT]:
        """All of the caller's records, newest first."""
        owner_id = self.require_principal()
        with self.store_call("list"):
            documents = await self.collection.find(
                filters={self.owner_field: owner_id},
                order_by=self.timestamp_field,
                descending=True,
            )
            records = [self.to_record(doc) for doc in documents]
        logger.info(f"Retrieved {len(records)} {self.kind} records for owner {owner_id}")
        return records

    async def apply_update(self, record_id: str, partial: Mapping[str, Any]) -> None:
        owner_id = self.require_principal()
        logger.info(f"Updating {self.kind} {record_id} for owner {owner_id}")
        with self.store_call("update", record_id):
            current = await self.fetch_owned(record_id, owner_id)
            if current is None:
                raise NotFoundOrForbidden(self.kind, record_id, "update")
            changes = await self.prepare_update(current, dict(partial))
            if not changes:
                logger.info(f"No changes for {self.kind} {record_id}")
                return
            written = await self.collection.update(record_id, changes, match={self.owner_field: owner_id})
        if written == 0:
            # Deleted between the ownership check and the write
            logger.warning(f"{self.kind.capitalize()} {record_id} vanished before update; nothing written")
            return
        logger.info(f"{self.kind.capitalize()} {record_id} updated successfully")

    async def prepare_update(self, current: Mapping[str, Any], partial: Dict[str, Any]) -> Dict[str, Any]:
        """Turn a partial update into the document changes to write."""
        return partial

    async def delete(self, record_id: str) -> None:
        """Delete one of the caller's records. Does not cascade to dependents."""
        owner_id = self.require_principal()
        logger.info(f"Deleting {self.kind} {record_id} for owner {owner_id}")
        with self.store_call("delete", record_id):
            current = await self.fetch_owned(record_id, owner_id)
            if current is None:
                raise NotFoundOrForbidden(self.kind, record_id, "delete")
            deleted = await self.collection.delete(record_id, match={self.owner_field: owner_id})
        if deleted == 0:
            logger.warning(f"{self.kind.capitalize()} {record_id} was already gone at delete time")
            return
        logger.info(f"{self.kind.capitalize()} {record_id} deleted successfully")
