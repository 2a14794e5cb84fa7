import asyncio

import pytest

from core.batch_job import BatchJobController
from service.batch_image_service import BatchImageService
from util.errors import AppError


def make_service(meal_repo, image_service) -> tuple[BatchImageService, BatchJobController]:
    jobs = BatchJobController(throttle_ms=0)
    return BatchImageService(jobs, meal_repo, image_service), jobs


@pytest.mark.asyncio
async def test_select_defaults_to_meals_without_images(meal_repo, image_service) -> None:
    service, _ = make_service(meal_repo, image_service)

    meals = await service.select_meals()

    assert [m.title for m in meals] == ["Mini Meatballs", "Veggie Stir Fry"]


@pytest.mark.asyncio
async def test_select_regenerate_takes_every_meal(meal_repo, image_service) -> None:
    service, _ = make_service(meal_repo, image_service)

    meals = await service.select_meals(regenerate=True)

    assert [m.id for m in meals] == [1, 2, 3]


@pytest.mark.asyncio
async def test_select_explicit_ids_keep_given_order(meal_repo, image_service) -> None:
    service, _ = make_service(meal_repo, image_service)

    meals = await service.select_meals(meal_ids=[3, 99, 1])

    assert [m.id for m in meals] == [3, 1]


@pytest.mark.asyncio
async def test_select_empty_id_list_selects_nothing(meal_repo, image_service) -> None:
    service, jobs = make_service(meal_repo, image_service)

    meals = await service.select_meals(meal_ids=[])
    message = await service.start(meal_ids=[])

    assert meals == []
    assert message == "No meals need images"
    assert jobs.is_running is False
    assert image_service.calls == []


@pytest.mark.asyncio
async def test_duplicate_ids_are_processed_once(meal_repo, image_service) -> None:
    service, jobs = make_service(meal_repo, image_service)

    meals = await service.select_meals(meal_ids=[2, 3, 2])
    message = await service.start(meal_ids=[2, 2])
    await jobs.wait_idle()

    assert [m.id for m in meals] == [2, 3]
    assert message == "Started generating images for 1 meals"
    assert image_service.calls == ["Mini Meatballs"]
    assert meal_repo.image_generations == {2: 1}


@pytest.mark.asyncio
async def test_start_updates_meals_and_counts(meal_repo, image_service) -> None:
    service, jobs = make_service(meal_repo, image_service)

    message = await service.start()
    await jobs.wait_idle()

    assert message == "Started generating images for 2 meals"
    assert image_service.calls == ["Mini Meatballs", "Veggie Stir Fry"]
    assert meal_repo.meals[2].imageUrl == "/generated/meals/mini-meatballs.png"
    assert meal_repo.meals[3].imageUrl == "/generated/meals/veggie-stir-fry.png"
    assert meal_repo.image_generations == {2: 1, 3: 1}
    progress = service.progress()
    assert progress.completed_count == 2
    assert progress.is_running is False


@pytest.mark.asyncio
async def test_start_with_nothing_to_do_does_not_launch(meal_repo, image_service) -> None:
    for meal_id in list(meal_repo.meals):
        await meal_repo.update_image(meal_id, "https://img.example/x.jpg")
    service, jobs = make_service(meal_repo, image_service)

    message = await service.start()

    assert message == "No meals need images"
    assert jobs.get_progress().total == 0
    assert image_service.calls == []


@pytest.mark.asyncio
async def test_start_refuses_when_images_unconfigured(meal_repo, image_service) -> None:
    image_service.is_configured = False
    service, jobs = make_service(meal_repo, image_service)

    with pytest.raises(AppError) as exc:
        await service.start()

    assert exc.value.status_code == 500
    assert jobs.is_running is False


@pytest.mark.asyncio
async def test_start_while_running_is_a_conflict(meal_repo, image_service) -> None:
    image_service.gate = asyncio.Event()
    service, jobs = make_service(meal_repo, image_service)

    await service.start(regenerate=True)
    with pytest.raises(AppError) as exc:
        await service.start(regenerate=True)

    assert exc.value.status_code == 409
    image_service.gate.set()
    await jobs.wait_idle()
    assert service.progress().completed_count == 3


@pytest.mark.asyncio
async def test_failed_generation_and_failed_persist_are_reported(
    meal_repo, image_service
) -> None:
    image_service.failures["Sheet Pan Chicken"] = "Upstream error 500"
    meal_repo.broken_ids.add(3)
    service, jobs = make_service(meal_repo, image_service)

    await service.start(regenerate=True)
    await jobs.wait_idle()

    progress = service.progress()
    assert progress.completed_count == 1
    assert progress.failed_count == 2
    assert [(f.item_id, f.error_message) for f in progress.failures] == [
        (1, "Upstream error 500"),
        (3, "database unavailable"),
    ]
    assert meal_repo.image_generations == {2: 1}


@pytest.mark.asyncio
async def test_vanished_meal_counts_as_failure(meal_repo, image_service) -> None:
    service, jobs = make_service(meal_repo, image_service)

    async def drop_then_generate(*args, **kwargs):
        meal_repo.meals.pop(2, None)
        return await type(image_service).generate_meal_image(image_service, *args, **kwargs)

    image_service.generate_meal_image = drop_then_generate
    await service.start(meal_ids=[2])
    await jobs.wait_idle()

    progress = service.progress()
    assert progress.failed_count == 1
    assert progress.failures[0].error_message == "Meal 2 no longer exists"


def test_stop_reports_whether_anything_was_running(meal_repo, image_service) -> None:
    service, _ = make_service(meal_repo, image_service)

    assert service.stop() == "No batch is running"
