# model/api.py
from pydantic import BaseModel, Field
from core.entities import JobProgress


class MessageResponse(BaseModel):
    message: str


class AdminLoginRequest(BaseModel):
    password: str


class AdminLoginResponse(BaseModel):
    success: bool


class GenerateImageRequest(BaseModel):
    mealId: int | None = None
    title: str = Field(min_length=1)
    ingredients: list[str] = Field(default_factory=list)
    cuisine: str | None = None
    skillLevel: str | None = None


class ImageResult(BaseModel):
    imageUrl: str
    success: bool
    error: str | None = None


class ImageStatsResponse(BaseModel):
    totalMeals: int
    withImages: int
    withoutImages: int
    cloudinaryConfigured: bool


class BatchGenerateRequest(BaseModel):
    regenerate: bool = False
    mealIds: list[int] | None = None


class BatchFailure(BaseModel):
    mealId: int
    title: str
    error: str


class BatchProgressResponse(BaseModel):
    current: int
    total: int
    currentMealTitle: str
    completed: int
    failed: int
    failures: list[BatchFailure]
    isRunning: bool

    @classmethod
    def from_progress(cls, progress: JobProgress) -> "BatchProgressResponse":
        return cls(
            current=progress.current,
            total=progress.total,
            currentMealTitle=progress.current_item_label,
            completed=progress.completed_count,
            failed=progress.failed_count,
            failures=[
                BatchFailure(mealId=f.item_id, title=f.label, error=f.error_message)
                for f in progress.failures
            ],
            isRunning=progress.is_running,
        )


class MealStatsEntry(BaseModel):
    mealId: int
    title: str
    views: int
    imageGenerations: int


class AdminStatsResponse(BaseModel):
    totalMeals: int
    mostViewed: list[MealStatsEntry]
    mostGenerated: list[MealStatsEntry]


class SampleMealsResponse(BaseModel):
    added: int
    message: str
