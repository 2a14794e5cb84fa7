# service/batch_image_service.py
from typing import List, Optional, Sequence
from core.batch_job import BatchJobController
from core.entities import ItemResult, JobProgress, WorkItem
from model.meal import Meal
from repository.meal_repository import MealRepository
from service.image_service import ImageGenerationService
from util.enums import ErrorMessage
from util.errors import AppError, ConfigurationError, ConflictError
import logging

logger = logging.getLogger(__name__)


class BatchImageService:
    """
    Glue between the admin routes, the meal catalog and the batch controller.
    """

    def __init__(
        self,
        jobs: BatchJobController,
        meals: MealRepository,
        images: ImageGenerationService,
    ) -> None:
        self._jobs = jobs
        self._meals = meals
        self._images = images

    async def select_meals(
        self, *, regenerate: bool = False, meal_ids: Optional[Sequence[int]] = None
    ) -> List[Meal]:
        """
        Explicit ids win (in the order given, each id once; an empty list
        selects nothing). Otherwise every meal, limited to meals without an
        image unless `regenerate` is set.
        """
        if meal_ids is not None:
            return await self._meals.get_many(dict.fromkeys(meal_ids))
        meals = await self._meals.list()
        if regenerate:
            return meals
        return [m for m in meals if not m.imageUrl]

    async def start(
        self, *, regenerate: bool = False, meal_ids: Optional[Sequence[int]] = None
    ) -> str:
        if not self._images.is_configured:
            logger.warning("batch.start.unconfigured")
            raise AppError.of(ErrorMessage.IMAGES_NOT_CONFIGURED)
        if self._jobs.is_running:
            raise AppError.of(ErrorMessage.BATCH_ALREADY_RUNNING)

        meals = await self.select_meals(regenerate=regenerate, meal_ids=meal_ids)
        if not meals:
            logger.info("batch.start.empty regenerate=%s", regenerate)
            return "No meals need images"

        items = [
            WorkItem(
                id=m.id,
                label=m.title,
                payload={
                    "title": m.title,
                    "ingredients": list(m.ingredients),
                    "cuisine": m.cuisine,
                    "skillLevel": m.skillLevel,
                },
            )
            for m in meals
        ]
        try:
            self._jobs.launch(items, self._generate, self._persist)
        except ConflictError:
            raise AppError.of(ErrorMessage.BATCH_ALREADY_RUNNING)
        return f"Started generating images for {len(items)} meals"

    def progress(self) -> JobProgress:
        return self._jobs.get_progress()

    def stop(self) -> str:
        running = self._jobs.is_running
        self._jobs.request_stop()
        if running:
            return "Batch will stop after the current meal"
        return "No batch is running"

    async def _generate(self, item: WorkItem) -> ItemResult:
        try:
            result = await self._images.generate_meal_image(
                item.payload["title"],
                item.payload.get("ingredients") or [],
                cuisine=item.payload.get("cuisine"),
                skill_level=item.payload.get("skillLevel"),
            )
        except ConfigurationError as e:
            return ItemResult.failed(f"Image generation not configured: {e}")
        if result.success and result.imageUrl:
            return ItemResult.ok(result.imageUrl)
        return ItemResult.failed(result.error or "Image generation failed")

    async def _persist(self, meal_id: int, image_url: str) -> None:
        updated = await self._meals.update_image(meal_id, image_url)
        if updated is None:
            raise LookupError(f"Meal {meal_id} no longer exists")
        await self._meals.increment_image_generation(meal_id)
