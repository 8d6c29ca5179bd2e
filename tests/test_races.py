"""
Check-then-act windows that the persistence layer does not close.

These tests pin the current behavior down rather than hide it: without a
unique constraint in the store, concurrent registrations of one QR code
both succeed; a delete racing an update lets both calls report success;
deleting an environment leaves its plants pointing at nothing.
"""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from growlog.core.dependencies import get_environment_repository, get_plant_repository
from growlog.core.exceptions import AlreadyExists
from growlog.modules.environments.schemas import EnvironmentCreate, EnvironmentUpdate
from growlog.modules.plants.schemas import PlantCreate
from tests.conftest import FakeDocumentStore


def _plant(qr_code: str, grow_room_id: str) -> PlantCreate:
    return PlantCreate(qr_code=qr_code, strain="Sour Diesel", birth_date=date(2023, 12, 10), grow_room_id=grow_room_id)


@pytest.mark.asyncio
async def test_concurrent_creates_with_same_qr_code_both_succeed(environments_for, plants_for, store: FakeDocumentStore) -> None:
    room = await environments_for("U1").create(EnvironmentCreate(name="Sala 01"))
    plants = plants_for("U1")

    first, second = await asyncio.gather(
        plants.create(_plant("plant789", room.id)),
        plants.create(_plant("plant789", room.id)),
    )

    assert first.id != second.id
    assert [d["qr_code"] for d in store.documents("plants")] == ["plant789", "plant789"]


@pytest.mark.asyncio
async def test_unique_constraint_closes_the_duplicate_window(context_for) -> None:
    constrained = FakeDocumentStore(unique={"plants": ["qr_code"]})
    context = context_for("U1")
    context.store = constrained
    room = await get_environment_repository(context).create(EnvironmentCreate(name="Sala 01"))
    plants = get_plant_repository(context)

    results = await asyncio.gather(
        plants.create(_plant("plant789", room.id)),
        plants.create(_plant("plant789", room.id)),
        return_exceptions=True,
    )

    assert sum(isinstance(r, AlreadyExists) for r in results) == 1
    assert len(constrained.documents("plants")) == 1


@pytest.mark.asyncio
async def test_delete_racing_update_both_report_success(environments_for, store: FakeDocumentStore) -> None:
    repo = environments_for("U1")
    created = await repo.create(EnvironmentCreate(name="Sala 01"))

    results = await asyncio.gather(
        repo.update(created.id, EnvironmentUpdate(name="Sala 01b")),
        repo.delete(created.id),
        return_exceptions=True,
    )

    assert results == [None, None]
    assert await repo.get_by_id(created.id) is None
    assert store.documents("environments") == []


@pytest.mark.asyncio
async def test_deleting_environment_leaves_dangling_plants(environments_for, plants_for) -> None:
    envs = environments_for("U1")
    room = await envs.create(EnvironmentCreate(name="Sala 03"))
    plant = await plants_for("U1").create(_plant("plantDEF", room.id))

    await envs.delete(room.id)

    orphan = await plants_for("U1").get_by_id(plant.id)
    assert orphan is not None
    assert orphan.grow_room_id == room.id
    assert await envs.get_by_id(room.id) is None
