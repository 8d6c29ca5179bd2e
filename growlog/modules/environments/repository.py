import logging
from typing import Any, Dict, Mapping

from growlog.core.normalizer import normalize_environment, to_store_value
from growlog.core.repository import OwnedRepository
from growlog.modules.environments.schemas import Environment, EnvironmentCreate, EnvironmentUpdate

logger = logging.getLogger(__name__)


class EnvironmentRepository(OwnedRepository[Environment]):
    """Grow rooms, visible and mutable only by their owner."""

    kind = "environment"
    model = Environment

    def normalize(self, document: Mapping[str, Any]) -> Dict[str, Any]:
        return normalize_environment(document)

    async def create(self, environment_data: EnvironmentCreate) -> Environment:
        """Create an environment for the current user"""
        owner_id = self.require_principal()
        logger.info(f"Adding environment '{environment_data.name}' for owner {owner_id}")
        with self.store_call("create"):
            stored = await self.insert_owned(owner_id, {
                "name": environment_data.name,
                "type": to_store_value(environment_data.type),
                "capacity": environment_data.capacity,
                "equipment": list(environment_data.equipment or []),
            })
            environment = self.to_record(stored)
        logger.info(f"Environment '{environment.name}' added successfully with ID: {environment.id}")
        return environment

    async def update(self, environment_id: str, environment_data: EnvironmentUpdate) -> None:
        """Apply the fields explicitly set on environment_data"""
        await self.apply_update(environment_id, environment_data.model_dump(exclude_unset=True))

    async def prepare_update(self, current: Mapping[str, Any], partial: Dict[str, Any]) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}
        if "name" in partial:
            changes["name"] = partial["name"]
        if "type" in partial:
            changes["type"] = to_store_value(partial["type"])
        if "capacity" in partial:
            changes["capacity"] = partial["capacity"]
        if "equipment" in partial:
            # An explicit None clears the list, same as []
            changes["equipment"] = list(partial["equipment"] or [])
        return changes
