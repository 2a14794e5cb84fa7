# service/meal_service.py
from typing import List
from model.api import AdminStatsResponse, MealStatsEntry, SampleMealsResponse
from model.meal import Meal, MealCreate, MealFilters, MealUpdate
from repository.meal_repository import MealRepository
from util.enums import ErrorMessage
from util.errors import AppError
import logging

logger = logging.getLogger(__name__)

TOP_STATS = 5

_UNSPLASH = "https://images.unsplash.com/{photo}?w=800"

SEED_MEALS: List[MealCreate] = [
    MealCreate(
        title="Sheet Pan Chicken & Veggies",
        description="One pan, no mess, healthy and colorful.",
        cuisine="American",
        skillLevel="Easy",
        timeMinutes=30,
        ageRanges=["2-5", "6-10", "10-13"],
        dietaryFlags=["gluten-free"],
        ingredients=["Chicken breast", "Broccoli", "Carrots", "Olive oil"],
        instructions=["Preheat oven", "Chop veggies", "Bake 20 mins"],
        imageUrl=_UNSPLASH.format(photo="photo-1594998893017-361479423561"),
    ),
    MealCreate(
        title="Mini Meatballs & Spaghetti",
        description="Fun-sized meatballs perfect for little hands.",
        cuisine="Italian",
        skillLevel="Intermediate",
        timeMinutes=45,
        ageRanges=["2-5", "6-10"],
        ingredients=["Ground beef", "Spaghetti", "Tomato sauce", "Breadcrumbs"],
    ),
    MealCreate(
        title="Chicken Quesadillas",
        description="Cheesy, crispy, and easy to customize.",
        cuisine="Mexican",
        skillLevel="Easy",
        timeMinutes=15,
        ageRanges=["2-5", "6-10", "10-13"],
        ingredients=["Tortillas", "Cheese", "Cooked Chicken"],
        imageUrl=_UNSPLASH.format(photo="photo-1599354607487-194d27129599"),
    ),
    MealCreate(
        title="Vegetable Stir Fry",
        description="Colorful veggies with mild sauce.",
        cuisine="Asian",
        skillLevel="Easy",
        timeMinutes=20,
        ageRanges=["6-10", "10-13"],
        dietaryFlags=["vegetarian"],
        ingredients=["Broccoli", "Bell peppers", "Soy sauce", "Rice"],
        imageUrl=_UNSPLASH.format(photo="photo-1512058564366-18510be2db19"),
    ),
]


class MealService:
    def __init__(self, meals: MealRepository) -> None:
        self._meals = meals

    async def list_meals(self, filters: MealFilters) -> List[Meal]:
        meals = await self._meals.list(filters)
        logger.info("meals.list count=%d", len(meals))
        return meals

    async def get_meal(self, meal_id: int) -> Meal:
        meal = await self._meals.get(meal_id)
        if meal is None:
            raise AppError.of(ErrorMessage.MEAL_NOT_FOUND)
        return meal

    async def record_view(self, meal_id: int) -> None:
        try:
            await self._meals.increment_view(meal_id)
        except Exception:
            # view counts are best effort
            logger.error("meals.view.error id=%d", meal_id, exc_info=True)

    async def seed_if_empty(self) -> int:
        if await self._meals.count() > 0:
            return 0
        logger.info("meals.seed.start count=%d", len(SEED_MEALS))
        for data in SEED_MEALS:
            await self._meals.create(data)
        logger.info("meals.seed.done")
        return len(SEED_MEALS)

    async def add_sample_meals(self) -> SampleMealsResponse:
        added = await self.seed_if_empty()
        if added:
            return SampleMealsResponse(added=added, message=f"Added {added} sample meals")
        return SampleMealsResponse(added=0, message="Catalog already has meals")

    # ---------------- Admin edits ----------------

    async def create_meal(self, data: MealCreate) -> Meal:
        return await self._meals.create(data)

    async def update_meal(self, meal_id: int, data: MealUpdate) -> Meal:
        meal = await self._meals.update(meal_id, data.changes())
        if meal is None:
            raise AppError.of(ErrorMessage.MEAL_NOT_FOUND)
        return meal

    async def delete_meal(self, meal_id: int) -> None:
        if not await self._meals.delete(meal_id):
            raise AppError.of(ErrorMessage.MEAL_NOT_FOUND)

    async def stats(self) -> AdminStatsResponse:
        """
        Catalog size plus the top meals by views and by image generations.
        Ties keep catalog order.
        """
        meals = await self._meals.list()
        counters = await self._meals.stats_for(m.id for m in meals)
        entries = [
            MealStatsEntry(
                mealId=m.id,
                title=m.title,
                views=counters.get(m.id, {}).get("views", 0),
                imageGenerations=counters.get(m.id, {}).get("imageGenerations", 0),
            )
            for m in meals
        ]
        return AdminStatsResponse(
            totalMeals=len(meals),
            mostViewed=sorted(entries, key=lambda e: -e.views)[:TOP_STATS],
            mostGenerated=sorted(entries, key=lambda e: -e.imageGenerations)[:TOP_STATS],
        )
