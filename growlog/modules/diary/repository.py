import logging
from typing import Any, Dict, List, Mapping

from growlog.core.exceptions import NotFoundOrForbidden
from growlog.core.normalizer import normalize_diary_entry
from growlog.core.principal import PrincipalResolver
from growlog.core.repository import OwnedRepository
from growlog.database.document_store import CollectionRef
from growlog.modules.diary.schemas import DiaryEntry, DiaryEntryCreate, DiaryEntryUpdate
from growlog.modules.plants.repository import PlantRepository

logger = logging.getLogger(__name__)


class DiaryRepository(OwnedRepository[DiaryEntry]):
    """Diary entries on a plant. The author owns the entry."""

    kind = "diary entry"
    model = DiaryEntry
    owner_field = "author_id"
    timestamp_field = "timestamp"

    def __init__(self, collection: CollectionRef, principal: PrincipalResolver, plants: PlantRepository):
        super().__init__(collection, principal)
        self.plants = plants

    def normalize(self, document: Mapping[str, Any]) -> Dict[str, Any]:
        return normalize_diary_entry(document)

    async def _require_plant(self, plant_id: str) -> None:
        if await self.plants.get_by_id(plant_id) is None:
            raise NotFoundOrForbidden("plant", plant_id, "use")

    async def add_entry(self, plant_id: str, entry_data: DiaryEntryCreate) -> DiaryEntry:
        author_id = self.require_principal()
        logger.info(f"Adding diary entry to plant {plant_id} by {author_id}")
        with self.store_call("create", plant_id):
            await self._require_plant(plant_id)
            stored = await self.insert_owned(author_id, {
                "plant_id": plant_id,
                **entry_data.model_dump(),
            })
            return self.to_record(stored)

    async def list_by_plant(self, plant_id: str) -> List[DiaryEntry]:
        """Entries on one of the caller's plants, newest first"""
        author_id = self.require_principal()
        with self.store_call("list", plant_id):
            await self._require_plant(plant_id)
            documents = await self.collection.find(
                filters={"plant_id": plant_id, self.owner_field: author_id},
                order_by=self.timestamp_field,
                descending=True,
            )
            return [self.to_record(doc) for doc in documents]

    async def update(self, entry_id: str, entry_data: DiaryEntryUpdate) -> None:
        await self.apply_update(entry_id, entry_data.model_dump(exclude_unset=True))
