# controller/meal_controller.py
from fastapi import APIRouter, BackgroundTasks, Depends
from model.meal import Meal, MealFilters
from service.meal_service import MealService
from util.constants import InternalURIs
from controller.controller_dependencies import get_meal_service

meal_router = APIRouter()


@meal_router.get(InternalURIs.MEALS, response_model=list[Meal])
async def list_meals(
    filters: MealFilters = Depends(),
    service: MealService = Depends(get_meal_service),
) -> list[Meal]:
    return await service.list_meals(filters)


@meal_router.get(InternalURIs.MEAL_DETAIL, response_model=Meal)
async def get_meal(
    meal_id: int,
    background: BackgroundTasks,
    service: MealService = Depends(get_meal_service),
) -> Meal:
    meal = await service.get_meal(meal_id)
    background.add_task(service.record_view, meal_id)
    return meal
