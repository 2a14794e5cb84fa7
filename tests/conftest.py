import asyncio
import contextlib
import os
from typing import AsyncIterator, Iterable

# Settings are read at import time, so the environment has to be in place first.
os.environ.update(
    {
        "APP_ENV": "test",
        "REDIS_URL": "redis://localhost:6379/15",
        "ALLOWED_ORIGIN": "http://localhost:5173",
        "SESSION_SECRET": "test-session-secret",
        "ADMIN_PASSWORD": "letmein",
        "OPENAI_API_KEY": "sk-test",
        "BATCH_THROTTLE_MS": "0",
        "SEED_ON_STARTUP": "false",
    }
)
for _key in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
    os.environ.pop(_key, None)

import httpx
import pytest

from model.api import ImageResult
from model.meal import Meal, MealCreate, MealFilters

ADMIN_PASSWORD = "letmein"


class FakeMealRepository:
    """In-memory stand-in for the Redis meal repository."""

    def __init__(self, meals: Iterable[MealCreate] = ()) -> None:
        self.meals: dict[int, Meal] = {}
        self.views: dict[int, int] = {}
        self.image_generations: dict[int, int] = {}
        self.broken_ids: set[int] = set()
        self._seq = 0
        for data in meals:
            self._add(data)

    def _add(self, data: MealCreate) -> Meal:
        self._seq += 1
        meal = Meal(id=self._seq, **data.model_dump())
        self.meals[meal.id] = meal
        return meal

    async def get(self, meal_id: int) -> Meal | None:
        return self.meals.get(meal_id)

    async def get_many(self, meal_ids: Iterable[int]) -> list[Meal]:
        return [self.meals[i] for i in meal_ids if i in self.meals]

    async def list(self, filters: MealFilters | None = None) -> list[Meal]:
        meals = list(self.meals.values())
        if filters is None:
            return meals
        return [m for m in meals if filters.matches(m)]

    async def count(self) -> int:
        return len(self.meals)

    async def image_counts(self) -> tuple[int, int]:
        return len(self.meals), sum(1 for m in self.meals.values() if m.imageUrl)

    async def create(self, data: MealCreate) -> Meal:
        return self._add(data)

    async def update_image(self, meal_id: int, image_url: str) -> Meal | None:
        if meal_id in self.broken_ids:
            raise ConnectionError("database unavailable")
        meal = self.meals.get(meal_id)
        if meal is None:
            return None
        updated = meal.model_copy(update={"imageUrl": image_url})
        self.meals[meal_id] = updated
        return updated

    async def update(self, meal_id: int, changes: dict) -> Meal | None:
        meal = self.meals.get(meal_id)
        if meal is None:
            return None
        updated = Meal.model_validate({**meal.model_dump(), **changes, "id": meal_id})
        self.meals[meal_id] = updated
        return updated

    async def delete(self, meal_id: int) -> bool:
        self.views.pop(meal_id, None)
        self.image_generations.pop(meal_id, None)
        return self.meals.pop(meal_id, None) is not None

    async def stats_for(self, meal_ids: Iterable[int]) -> dict[int, dict[str, int]]:
        return {
            i: {
                "views": self.views.get(i, 0),
                "aiGenerations": 0,
                "imageGenerations": self.image_generations.get(i, 0),
            }
            for i in meal_ids
        }

    async def increment_view(self, meal_id: int) -> None:
        self.views[meal_id] = self.views.get(meal_id, 0) + 1

    async def increment_image_generation(self, meal_id: int) -> None:
        self.image_generations[meal_id] = self.image_generations.get(meal_id, 0) + 1


class FakeImageService:
    """Records calls; titles in `failures` fail, titles in `raises` blow up."""

    def __init__(self) -> None:
        self.is_configured = True
        self.cloudinary_configured = False
        self.calls: list[str] = []
        self.failures: dict[str, str] = {}
        self.raises: set[str] = set()
        self.gate: asyncio.Event | None = None

    async def generate_meal_image(
        self, title, ingredients, cuisine=None, skill_level=None
    ) -> ImageResult:
        self.calls.append(title)
        if self.gate is not None:
            await self.gate.wait()
        if title in self.raises:
            raise RuntimeError(f"boom: {title}")
        if title in self.failures:
            return ImageResult(imageUrl="", success=False, error=self.failures[title])
        slug = title.lower().replace(" ", "-")
        return ImageResult(imageUrl=f"/generated/meals/{slug}.png", success=True)


def sample_meals() -> list[MealCreate]:
    return [
        MealCreate(
            title="Sheet Pan Chicken",
            description="One pan, no mess.",
            cuisine="American",
            skillLevel="Easy",
            timeMinutes=30,
            ageRanges=["2-5", "6-10"],
            dietaryFlags=["gluten-free"],
            ingredients=["Chicken", "Broccoli"],
            imageUrl="https://img.example/chicken.jpg",
        ),
        MealCreate(
            title="Mini Meatballs",
            description="Fun-sized meatballs for little hands.",
            cuisine="Italian",
            skillLevel="Intermediate",
            timeMinutes=45,
            ageRanges=["2-5"],
            ingredients=["Beef", "Spaghetti"],
        ),
        MealCreate(
            title="Veggie Stir Fry",
            description="Colorful veggies with mild sauce.",
            cuisine="Asian",
            skillLevel="Easy",
            timeMinutes=20,
            ageRanges=["6-10", "10-13"],
            dietaryFlags=["vegetarian"],
            ingredients=["Peppers", "Rice"],
        ),
    ]


@pytest.fixture
def meal_repo() -> FakeMealRepository:
    return FakeMealRepository(sample_meals())


@pytest.fixture
def image_service() -> FakeImageService:
    return FakeImageService()


@pytest.fixture
def app(meal_repo, image_service):
    from controller.admin_controller import image_rate_limiter
    from controller.controller_dependencies import get_image_service, get_meal_repository
    from core.batch_job import BatchJobController
    from main import app as fastapi_app

    async def _no_limit() -> None:
        return None

    fastapi_app.state.batch_jobs = BatchJobController(throttle_ms=0)
    fastapi_app.dependency_overrides[get_meal_repository] = lambda: meal_repo
    fastapi_app.dependency_overrides[get_image_service] = lambda: image_service
    fastapi_app.dependency_overrides[image_rate_limiter] = _no_limit
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@contextlib.asynccontextmanager
async def make_client(app, *, login: bool = True) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        if login:
            resp = await client.post(
                "/api/admin/login", json={"password": ADMIN_PASSWORD}
            )
            assert resp.status_code == 200
        yield client
