from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from growlog.core.exceptions import AlreadyExists, NotFoundOrForbidden, StoreUnavailable, Unauthenticated
from growlog.modules.environments.schemas import EnvironmentCreate
from growlog.modules.plants.schemas import FLOWERING, PLANT_STATUSES, SEEDLING, VEGETATIVE, PlantCreate, PlantUpdate
from growlog.scripts.seed_demo_data import DEMO_PLANTS
from tests.conftest import FakeDocumentStore


def _plant(qr_code: str, grow_room_id: str, strain: str = "Purple Haze") -> PlantCreate:
    return PlantCreate(qr_code=qr_code, strain=strain, birth_date=date(2024, 2, 1), grow_room_id=grow_room_id)


@pytest.mark.asyncio
async def test_register_plant_in_own_room(environments_for, plants_for) -> None:
    room = await environments_for("U1").create(EnvironmentCreate(name="Sala 01"))

    plant = await plants_for("U1").create(_plant("plant456", room.id))

    assert plant.qr_code == "plant456"
    assert plant.owner_id == "U1"
    assert plant.grow_room_id == room.id
    assert plant.birth_date == date(2024, 2, 1)
    assert plant.status == VEGETATIVE
    assert plant.created_at


@pytest.mark.asyncio
async def test_duplicate_qr_code_fails_without_writing(environments_for, plants_for, store: FakeDocumentStore) -> None:
    room = await environments_for("U1").create(EnvironmentCreate(name="Sala 01"))
    await plants_for("U1").create(_plant("plant456", room.id))
    writes_before = len(store.writes)

    with pytest.raises(AlreadyExists):
        await plants_for("U1").create(_plant("plant456", room.id, strain="Outra"))

    assert len(store.writes) == writes_before
    assert len(store.documents("plants")) == 1


@pytest.mark.asyncio
async def test_qr_code_is_unique_across_owners(environments_for, plants_for) -> None:
    room_u1 = await environments_for("U1").create(EnvironmentCreate(name="Sala 01"))
    room_u2 = await environments_for("U2").create(EnvironmentCreate(name="Sala A"))
    await plants_for("U1").create(_plant("plant456", room_u1.id))

    with pytest.raises(AlreadyExists):
        await plants_for("U2").create(_plant("plant456", room_u2.id))


@pytest.mark.asyncio
async def test_cannot_register_plant_in_someone_elses_room(environments_for, plants_for, store: FakeDocumentStore) -> None:
    room = await environments_for("U1").create(EnvironmentCreate(name="Sala 01"))

    with pytest.raises(NotFoundOrForbidden) as exc_info:
        await plants_for("U2").create(_plant("plant456", room.id))

    assert exc_info.value.details["kind"] == "environment"
    assert store.documents("plants") == []


@pytest.mark.asyncio
async def test_qr_lookup_is_global_but_requires_a_principal(environments_for, plants_for) -> None:
    room = await environments_for("U1").create(EnvironmentCreate(name="Sala 01"))
    plant = await plants_for("U1").create(_plant("plantABC", room.id))

    assert await plants_for("U2").get_by_qr_code("plantABC") == plant
    assert await plants_for("U2").get_by_qr_code("missing") is None
    with pytest.raises(Unauthenticated):
        await plants_for(None).get_by_qr_code("plantABC")


@pytest.mark.asyncio
async def test_plants_are_owner_scoped_by_id(environments_for, plants_for) -> None:
    room = await environments_for("U1").create(EnvironmentCreate(name="Sala 01"))
    plant = await plants_for("U1").create(_plant("plantABC", room.id))

    assert await plants_for("U1").get_by_id(plant.id) == plant
    assert await plants_for("U2").get_by_id(plant.id) is None
    assert await plants_for("U2").list_by_owner() == []
    with pytest.raises(NotFoundOrForbidden):
        await plants_for("U2").update(plant.id, PlantUpdate(status=FLOWERING))
    with pytest.raises(NotFoundOrForbidden):
        await plants_for("U2").delete(plant.id)


@pytest.mark.asyncio
async def test_list_by_environment(environments_for, plants_for) -> None:
    envs = environments_for("U1")
    sala1 = await envs.create(EnvironmentCreate(name="Sala 01"))
    sala2 = await envs.create(EnvironmentCreate(name="Sala 02"))
    plants = plants_for("U1")
    await plants.create(_plant("p1", sala1.id))
    await plants.create(_plant("p2", sala2.id))
    await plants.create(_plant("p3", sala1.id))

    in_sala1 = await plants.list_by_environment(sala1.id)

    assert [p.qr_code for p in in_sala1] == ["p3", "p1"]
    with pytest.raises(NotFoundOrForbidden):
        await plants_for("U2").list_by_environment(sala1.id)


@pytest.mark.asyncio
async def test_update_status_and_move_rooms(environments_for, plants_for) -> None:
    envs = environments_for("U1")
    sala1 = await envs.create(EnvironmentCreate(name="Sala 01"))
    sala2 = await envs.create(EnvironmentCreate(name="Sala 02"))
    plants = plants_for("U1")
    plant = await plants.create(_plant("p1", sala1.id))

    await plants.update(plant.id, PlantUpdate(status=FLOWERING, grow_room_id=sala2.id))

    updated = await plants.get_by_id(plant.id)
    assert updated.status == FLOWERING
    assert updated.grow_room_id == sala2.id
    assert updated.strain == plant.strain
    assert updated.qr_code == "p1"


@pytest.mark.asyncio
async def test_cannot_move_plant_into_foreign_room(environments_for, plants_for, store: FakeDocumentStore) -> None:
    sala1 = await environments_for("U1").create(EnvironmentCreate(name="Sala 01"))
    foreign = await environments_for("U2").create(EnvironmentCreate(name="Sala A"))
    plant = await plants_for("U1").create(_plant("p1", sala1.id))
    writes_before = len(store.writes)

    with pytest.raises(NotFoundOrForbidden):
        await plants_for("U1").update(plant.id, PlantUpdate(grow_room_id=foreign.id))

    assert len(store.writes) == writes_before


def test_qr_code_is_not_updatable() -> None:
    assert "qr_code" not in PlantUpdate.model_fields
    with pytest.raises(ValidationError):
        PlantUpdate(strain=None)


@pytest.mark.asyncio
async def test_store_failure_during_room_check_names_both_operations(plants_for, store: FakeDocumentStore) -> None:
    store.fail_with = StoreUnavailable("connection refused")

    with pytest.raises(StoreUnavailable) as exc_info:
        await plants_for("U1").create(_plant("plant123", "env-7"))

    details = exc_info.value.details
    assert details["kind"] == "plant"
    assert details["action"] == "create"
    assert "id" not in details
    assert details["cause"] == {"kind": "environment", "action": "fetch", "id": "env-7"}
    assert exc_info.value.to_dict()["error"] == "StoreUnavailable"


def test_seed_statuses_are_known_growth_stages() -> None:
    assert PLANT_STATUSES[0] == SEEDLING
    assert {status for *_, status in DEMO_PLANTS} <= set(PLANT_STATUSES)
