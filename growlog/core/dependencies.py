"""
Repository factories bound to a StoreContext
"""

from growlog.database.supabase_client import StoreContext
from growlog.modules.diary.repository import DiaryRepository
from growlog.modules.environments.repository import EnvironmentRepository
from growlog.modules.plants.repository import PlantRepository


def get_environment_repository(context: StoreContext) -> EnvironmentRepository:
    collection = context.store.collection(context.settings.environments_table)
    return EnvironmentRepository(collection, context.principal)


def get_plant_repository(context: StoreContext) -> PlantRepository:
    collection = context.store.collection(context.settings.plants_table)
    return PlantRepository(collection, context.principal, get_environment_repository(context))


def get_diary_repository(context: StoreContext) -> DiaryRepository:
    collection = context.store.collection(context.settings.diary_entries_table)
    return DiaryRepository(collection, context.principal, get_plant_repository(context))
