# controller/controller_dependencies.py
from fastapi import Depends, Request
from core.batch_job import BatchJobController
from repository.meal_repository import MealRepository
from service.admin_auth_service import AdminAuthService
from service.batch_image_service import BatchImageService
from service.image_service import ImageGenerationService
from service.meal_service import MealService


def get_meal_repository() -> MealRepository:
    return MealRepository()


def get_image_service() -> ImageGenerationService:
    return ImageGenerationService()


def get_admin_auth() -> AdminAuthService:
    return AdminAuthService()


def get_batch_jobs(request: Request) -> BatchJobController:
    # One controller per app, created at startup (see main.py)
    return request.app.state.batch_jobs


def get_meal_service(
    meals: MealRepository = Depends(get_meal_repository),
) -> MealService:
    return MealService(meals)


def get_batch_service(
    jobs: BatchJobController = Depends(get_batch_jobs),
    meals: MealRepository = Depends(get_meal_repository),
    images: ImageGenerationService = Depends(get_image_service),
) -> BatchImageService:
    return BatchImageService(jobs, meals, images)


async def require_admin(
    request: Request, auth: AdminAuthService = Depends(get_admin_auth)
) -> None:
    auth.require(request.session)
