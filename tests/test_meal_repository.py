import fakeredis
import pytest

import repository.meal_repository as meal_repository
from model.meal import MealFilters
from repository.meal_repository import MealRepository
from repository.namespaces import MEAL_IDS, MEALS

from conftest import sample_meals


@pytest.fixture
def redis_client(monkeypatch) -> fakeredis.FakeAsyncRedis:
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer())

    async def _get_redis() -> fakeredis.FakeAsyncRedis:
        return client

    monkeypatch.setattr(meal_repository, "get_redis", _get_redis)
    return client


async def seeded(repo: MealRepository) -> None:
    for data in sample_meals():
        await repo.create(data)


@pytest.mark.asyncio
async def test_create_assigns_ids_and_indexes(redis_client) -> None:
    repo = MealRepository()
    await seeded(repo)

    meals = await repo.list()

    assert [(m.id, m.title) for m in meals] == [
        (1, "Sheet Pan Chicken"),
        (2, "Mini Meatballs"),
        (3, "Veggie Stir Fry"),
    ]
    assert await repo.count() == 3
    assert await redis_client.zrange(MEAL_IDS, 0, -1) == [b"1", b"2", b"3"]
    assert await repo.stats_for([2]) == {
        2: {"views": 0, "aiGenerations": 0, "imageGenerations": 0}
    }


@pytest.mark.asyncio
async def test_get_many_keeps_order_and_drops_unknown_ids(redis_client) -> None:
    repo = MealRepository()
    await seeded(repo)

    meals = await repo.get_many([3, 42, 1])

    assert [m.id for m in meals] == [3, 1]
    assert await repo.get_many([]) == []
    assert await repo.get(42) is None


@pytest.mark.asyncio
async def test_update_image_is_idempotent(redis_client) -> None:
    repo = MealRepository()
    await seeded(repo)

    first = await repo.update_image(2, "/generated/meals/a.png")
    stored = await redis_client.get(f"{MEALS}:2")
    second = await repo.update_image(2, "/generated/meals/a.png")

    assert first is not None and second is not None
    assert second.imageUrl == "/generated/meals/a.png"
    assert second.updatedAt == first.updatedAt
    assert await redis_client.get(f"{MEALS}:2") == stored
    assert (await repo.get(2)).imageUrl == "/generated/meals/a.png"


@pytest.mark.asyncio
async def test_update_image_on_missing_meal_writes_nothing(redis_client) -> None:
    repo = MealRepository()
    await seeded(repo)

    result = await repo.update_image(99, "/generated/meals/ghost.png")

    assert result is None
    assert await redis_client.exists(f"{MEALS}:99") == 0
    assert await repo.count() == 3


@pytest.mark.asyncio
async def test_image_counts(redis_client) -> None:
    repo = MealRepository()
    await seeded(repo)
    await repo.update_image(3, "/generated/meals/stir-fry.png")

    assert await repo.image_counts() == (3, 2)


@pytest.mark.asyncio
async def test_counters(redis_client) -> None:
    repo = MealRepository()
    await seeded(repo)

    await repo.increment_view(1)
    await repo.increment_view(1)
    await repo.increment_image_generation(3)

    stats = await repo.stats_for([1, 3, 7])

    assert stats[1]["views"] == 2
    assert stats[3]["imageGenerations"] == 1
    assert stats[7] == {"views": 0, "aiGenerations": 0, "imageGenerations": 0}


@pytest.mark.asyncio
async def test_partial_update_and_delete(redis_client) -> None:
    repo = MealRepository()
    await seeded(repo)
    await repo.increment_view(2)

    updated = await repo.update(2, {"timeMinutes": 35, "tags": ["pasta"]})
    missing = await repo.update(99, {"timeMinutes": 35})

    assert updated is not None
    assert updated.timeMinutes == 35
    assert updated.tags == ["pasta"]
    assert updated.title == "Mini Meatballs"
    assert missing is None

    assert await repo.delete(2) is True
    assert await repo.delete(2) is False
    assert await repo.get(2) is None
    assert [m.id for m in await repo.list()] == [1, 3]
    assert await repo.stats_for([2]) == {
        2: {"views": 0, "aiGenerations": 0, "imageGenerations": 0}
    }


@pytest.mark.asyncio
async def test_list_applies_filters(redis_client) -> None:
    repo = MealRepository()
    await seeded(repo)

    meals = await repo.list(MealFilters(skill="Easy", search="stir"))

    assert [m.title for m in meals] == ["Veggie Stir Fry"]
