"""
Seed Demo Data Script
Creates a few grow rooms and the demo plants for one user, going through
the repositories so ownership and QR code rules apply as usual.
Safe to run more than once: existing rooms (by name) and plants (by QR code) are skipped.

    python -m growlog.scripts.seed_demo_data --owner-id <user uuid>
"""

import argparse
import asyncio
import logging
from datetime import date
from typing import Dict, List

from growlog.config.settings import settings
from growlog.core.dependencies import get_environment_repository, get_plant_repository
from growlog.core.exceptions import AlreadyExists, GrowlogError
from growlog.core.logging_config import configure_logging
from growlog.core.principal import TokenPrincipal
from growlog.database.document_store import SupabaseDocumentStore
from growlog.database.supabase_client import StoreContext, create_store_client
from growlog.modules.environments.schemas import EnvironmentCreate, EnvironmentType
from growlog.modules.plants.schemas import DRYING, FLOWERING, VEGETATIVE, PlantCreate

logger = logging.getLogger(__name__)

DEMO_ENVIRONMENTS: List[EnvironmentCreate] = [
    EnvironmentCreate(name="Sala 01", type=EnvironmentType.INDOOR, capacity=12, equipment=["LED 480W", "Exaustor"]),
    EnvironmentCreate(name="Sala 02", type=EnvironmentType.INDOOR, capacity=6),
    EnvironmentCreate(name="Sala 03", type=EnvironmentType.GREENHOUSE),
    EnvironmentCreate(name="Sala 42", type=EnvironmentType.OUTDOOR),
]

# (qr_code, strain, birth_date, room name, status)
DEMO_PLANTS = [
    ("plant123", "Variedade Exemplo", date(2024, 1, 15), "Sala 42", VEGETATIVE),
    ("plant456", "Purple Haze", date(2024, 2, 1), "Sala 01", FLOWERING),
    ("plant789", "Sour Diesel", date(2023, 12, 10), "Sala 01", DRYING),
    ("plantABC", "Cepa Problema", date(2024, 1, 20), "Sala 02", VEGETATIVE),
    ("plantDEF", "White Widow", date(2024, 1, 5), "Sala 03", FLOWERING),
    ("plantGHI", "OG Kush", date(2024, 2, 10), "Sala 03", FLOWERING),
]


async def seed_environments(context: StoreContext) -> Dict[str, str]:
    """Create missing demo rooms; returns room name -> environment id"""
    logger.info("Seeding environments...")
    repository = get_environment_repository(context)
    room_ids = {env.name: env.id for env in await repository.list_by_owner()}
    created_count = 0
    for environment in DEMO_ENVIRONMENTS:
        if environment.name in room_ids:
            logger.debug(f"Environment already present: {environment.name}")
            continue
        created = await repository.create(environment)
        room_ids[created.name] = created.id
        created_count += 1
    logger.info(f"Environments: {created_count} created, {len(DEMO_ENVIRONMENTS) - created_count} already present")
    return room_ids


async def seed_plants(context: StoreContext, room_ids: Dict[str, str]) -> int:
    logger.info("Seeding plants...")
    repository = get_plant_repository(context)
    created_count = 0
    for qr_code, strain, birth_date, room, status in DEMO_PLANTS:
        try:
            await repository.create(PlantCreate(
                qr_code=qr_code,
                strain=strain,
                birth_date=birth_date,
                grow_room_id=room_ids[room],
                status=status,
            ))
            created_count += 1
        except AlreadyExists:
            logger.debug(f"Plant already present: {qr_code}")
    logger.info(f"Plants: {created_count} created, {len(DEMO_PLANTS) - created_count} already present")
    return created_count


async def seed(owner_id: str) -> None:
    client = await create_store_client(settings.supabase_url, settings.supabase_service_role_key)
    context = StoreContext(SupabaseDocumentStore(client), TokenPrincipal(owner_id), settings, client=client)
    async with context:
        room_ids = await seed_environments(context)
        await seed_plants(context, room_ids)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed demo grow rooms and plants for a user")
    parser.add_argument("--owner-id", required=True, help="Supabase user id that will own the demo data")
    args = parser.parse_args()

    configure_logging(settings)
    try:
        asyncio.run(seed(args.owner_id))
    except GrowlogError as e:
        logger.error(f"Seeding failed: {e.message}")
        return 1
    logger.info("Seeding complete")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
