# controller/admin_controller.py
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from model.api import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminStatsResponse,
    BatchGenerateRequest,
    BatchProgressResponse,
    GenerateImageRequest,
    ImageResult,
    ImageStatsResponse,
    MessageResponse,
    SampleMealsResponse,
)
from model.meal import Meal, MealCreate, MealUpdate
from repository.meal_repository import MealRepository
from service.admin_auth_service import AdminAuthService
from service.batch_image_service import BatchImageService
from service.image_service import ImageGenerationService
from service.meal_service import MealService
from util.constants import InternalURIs
from util.enums import ErrorMessage
from util.errors import AppError, ConfigurationError
from controller.controller_dependencies import (
    get_admin_auth,
    get_batch_service,
    get_image_service,
    get_meal_repository,
    get_meal_service,
    require_admin,
)
import logging

logger = logging.getLogger(__name__)

image_rate_limiter = RateLimiter(
    times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
)

# Login stays outside the admin guard
auth_router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])


@auth_router.post(
    InternalURIs.ADMIN_LOGIN,
    response_model=AdminLoginResponse,
    status_code=status.HTTP_200_OK,
)
async def login(
    payload: AdminLoginRequest,
    request: Request,
    auth: AdminAuthService = Depends(get_admin_auth),
) -> AdminLoginResponse:
    auth.login(request.session, payload.password)
    return AdminLoginResponse(success=True)


@admin_router.get(InternalURIs.IMAGE_STATS, response_model=ImageStatsResponse)
async def image_stats(
    meals: MealRepository = Depends(get_meal_repository),
    images: ImageGenerationService = Depends(get_image_service),
) -> ImageStatsResponse:
    total, with_images = await meals.image_counts()
    return ImageStatsResponse(
        totalMeals=total,
        withImages=with_images,
        withoutImages=total - with_images,
        cloudinaryConfigured=images.cloudinary_configured,
    )


@admin_router.post(
    InternalURIs.GENERATE_MEAL_IMAGE,
    response_model=ImageResult,
    response_model_exclude_none=True,
    dependencies=[Depends(image_rate_limiter)],
)
async def generate_meal_image(
    payload: GenerateImageRequest,
    meals: MealRepository = Depends(get_meal_repository),
    images: ImageGenerationService = Depends(get_image_service),
) -> ImageResult:
    try:
        result = await images.generate_meal_image(
            payload.title,
            payload.ingredients,
            cuisine=payload.cuisine,
            skill_level=payload.skillLevel,
        )
    except ConfigurationError:
        raise AppError.of(ErrorMessage.IMAGES_NOT_CONFIGURED)

    if result.success and payload.mealId is not None:
        updated = await meals.update_image(payload.mealId, result.imageUrl)
        if updated is None:
            logger.warning("image.single.meal_missing id=%d", payload.mealId)
        else:
            await meals.increment_image_generation(payload.mealId)
    return result


@admin_router.post(InternalURIs.BATCH_GENERATE_IMAGES, response_model=MessageResponse)
async def batch_generate_images(
    payload: BatchGenerateRequest | None = None,
    service: BatchImageService = Depends(get_batch_service),
) -> MessageResponse:
    payload = payload or BatchGenerateRequest()
    message = await service.start(
        regenerate=payload.regenerate, meal_ids=payload.mealIds
    )
    return MessageResponse(message=message)


@admin_router.get(InternalURIs.BATCH_PROGRESS, response_model=BatchProgressResponse)
async def batch_progress(
    service: BatchImageService = Depends(get_batch_service),
) -> BatchProgressResponse:
    return BatchProgressResponse.from_progress(service.progress())


@admin_router.post(InternalURIs.STOP_BATCH, response_model=MessageResponse)
async def stop_batch(
    service: BatchImageService = Depends(get_batch_service),
) -> MessageResponse:
    return MessageResponse(message=service.stop())


@admin_router.get(InternalURIs.ADMIN_STATS, response_model=AdminStatsResponse)
async def admin_stats(
    service: MealService = Depends(get_meal_service),
) -> AdminStatsResponse:
    return await service.stats()


@admin_router.post(InternalURIs.ADD_SAMPLE_MEALS, response_model=SampleMealsResponse)
async def add_sample_meals(
    service: MealService = Depends(get_meal_service),
) -> SampleMealsResponse:
    return await service.add_sample_meals()


# Catalog edits share the public /api/meals paths but sit behind the admin guard
@admin_router.post(
    InternalURIs.MEALS, response_model=Meal, status_code=status.HTTP_201_CREATED
)
async def create_meal(
    payload: MealCreate,
    service: MealService = Depends(get_meal_service),
) -> Meal:
    return await service.create_meal(payload)


@admin_router.put(InternalURIs.MEAL_DETAIL, response_model=Meal)
async def update_meal(
    meal_id: int,
    payload: MealUpdate,
    service: MealService = Depends(get_meal_service),
) -> Meal:
    return await service.update_meal(meal_id, payload)


@admin_router.delete(
    InternalURIs.MEAL_DETAIL,
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_meal(
    meal_id: int,
    service: MealService = Depends(get_meal_service),
) -> Response:
    await service.delete_meal(meal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
