import logging
from typing import Any, Dict, List, Mapping, Optional

from growlog.core.exceptions import AlreadyExists, DuplicateKeyError, NotFoundOrForbidden
from growlog.core.normalizer import normalize_plant, to_store_value
from growlog.core.principal import PrincipalResolver
from growlog.core.repository import OwnedRepository
from growlog.database.document_store import CollectionRef
from growlog.modules.environments.repository import EnvironmentRepository
from growlog.modules.plants.schemas import Plant, PlantCreate, PlantUpdate

logger = logging.getLogger(__name__)


class PlantRepository(OwnedRepository[Plant]):
    """
    Plants, owned by the user who registered them and addressable by QR code.

    qr_code uniqueness is checked before the insert. The check and the
    insert are separate round trips, so two concurrent registrations of
    the same code can both pass the check; only a unique constraint on
    the table closes that window, and a violation of it is reported as
    AlreadyExists too.
    """

    kind = "plant"
    model = Plant

    def __init__(self, collection: CollectionRef, principal: PrincipalResolver, environments: EnvironmentRepository):
        super().__init__(collection, principal)
        self.environments = environments

    def normalize(self, document: Mapping[str, Any]) -> Dict[str, Any]:
        return normalize_plant(document)

    async def _require_grow_room(self, grow_room_id: str) -> None:
        if await self.environments.get_by_id(grow_room_id) is None:
            raise NotFoundOrForbidden("environment", grow_room_id, "use")

    async def _find_by_qr_code(self, qr_code: str) -> Optional[Dict[str, Any]]:
        documents = await self.collection.find(filters={"qr_code": qr_code}, limit=1)
        return documents[0] if documents else None

    async def create(self, plant_data: PlantCreate) -> Plant:
        """Register a plant in one of the current user's environments"""
        owner_id = self.require_principal()
        logger.info(f"Registering plant {plant_data.qr_code} for owner {owner_id}")
        with self.store_call("create"):
            await self._require_grow_room(plant_data.grow_room_id)
            if await self._find_by_qr_code(plant_data.qr_code) is not None:
                logger.warning(f"Plant with QR code {plant_data.qr_code} already exists")
                raise AlreadyExists(
                    f"A plant with QR code {plant_data.qr_code} already exists",
                    {"kind": self.kind, "qr_code": plant_data.qr_code},
                )
            try:
                stored = await self.insert_owned(owner_id, {
                    "qr_code": plant_data.qr_code,
                    "strain": plant_data.strain,
                    "birth_date": to_store_value(plant_data.birth_date),
                    "grow_room_id": plant_data.grow_room_id,
                    "status": plant_data.status,
                })
            except DuplicateKeyError as e:
                raise AlreadyExists(
                    f"A plant with QR code {plant_data.qr_code} already exists",
                    {"kind": self.kind, "qr_code": plant_data.qr_code},
                ) from e
            plant = self.to_record(stored)
        logger.info(f"Plant {plant.qr_code} registered with ID: {plant.id}")
        return plant

    async def get_by_qr_code(self, qr_code: str) -> Optional[Plant]:
        """Look a plant up by its scanned QR code, whoever owns it"""
        self.require_principal()
        logger.info(f"Looking up plant by QR code: {qr_code}")
        with self.store_call("fetch", qr_code):
            document = await self._find_by_qr_code(qr_code)
            if document is None:
                logger.info(f"No plant found for QR code: {qr_code}")
                return None
            return self.to_record(document)

    async def list_by_environment(self, environment_id: str) -> List[Plant]:
        """The caller's plants in one of the caller's environments, newest first"""
        owner_id = self.require_principal()
        with self.store_call("list", environment_id):
            await self._require_grow_room(environment_id)
            documents = await self.collection.find(
                filters={"grow_room_id": environment_id, self.owner_field: owner_id},
                order_by=self.timestamp_field,
                descending=True,
            )
            return [self.to_record(doc) for doc in documents]

    async def update(self, plant_id: str, plant_data: PlantUpdate) -> None:
        await self.apply_update(plant_id, plant_data.model_dump(exclude_unset=True))

    async def prepare_update(self, current: Mapping[str, Any], partial: Dict[str, Any]) -> Dict[str, Any]:
        if "grow_room_id" in partial and partial["grow_room_id"] != current.get("grow_room_id"):
            await self._require_grow_room(partial["grow_room_id"])
        return {field: to_store_value(value) for field, value in partial.items()}
