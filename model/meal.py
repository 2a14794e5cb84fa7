# model/meal.py
from datetime import datetime, timezone
from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AmazonRecommendation(BaseModel):
    title: str
    category: str
    asin: str | None = None
    searchQuery: str
    affiliateUrl: str | None = None
    whyThisHelps: str


class MealCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    cuisine: str | None = None
    skillLevel: str | None = None
    timeMinutes: int = Field(ge=0)
    ageRanges: list[str] = Field(default_factory=list)
    dietaryFlags: list[str] = Field(default_factory=list)
    imageUrl: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    kidFriendlyNotes: str | None = None
    slug: str | None = None
    seoTitle: str | None = None
    seoDescription: str | None = None
    tags: list[str] = Field(default_factory=list)
    amazonRecommendations: list[AmazonRecommendation] = Field(default_factory=list)


class Meal(MealCreate):
    id: int
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)


class MealUpdate(BaseModel):
    """
    Partial admin edit; only fields present in the request are applied.
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    cuisine: str | None = None
    skillLevel: str | None = None
    timeMinutes: int | None = Field(default=None, ge=0)
    ageRanges: list[str] | None = None
    dietaryFlags: list[str] | None = None
    imageUrl: str | None = None
    ingredients: list[str] | None = None
    instructions: list[str] | None = None
    kidFriendlyNotes: str | None = None
    slug: str | None = None
    seoTitle: str | None = None
    seoDescription: str | None = None
    tags: list[str] | None = None
    amazonRecommendations: list[AmazonRecommendation] | None = None

    def changes(self) -> dict:
        # explicit nulls only clear fields that are nullable on a meal
        data = self.model_dump(exclude_unset=True)
        return {
            k: v
            for k, v in data.items()
            if v is not None or MealCreate.model_fields[k].default is None
        }


class MealFilters(BaseModel):
    """
    Catalog filters. Unset fields do not constrain the result.
    """

    ageRange: str | None = None
    diet: str | None = None
    cuisine: str | None = None
    skill: str | None = None
    timeLimit: int | None = None
    search: str | None = None

    def matches(self, meal: Meal) -> bool:
        if self.cuisine and self.cuisine != "Any" and meal.cuisine != self.cuisine:
            return False
        if self.skill and meal.skillLevel != self.skill:
            return False
        if self.timeLimit and meal.timeMinutes > self.timeLimit:
            return False
        if self.ageRange and self.ageRange not in meal.ageRanges:
            return False
        if self.diet and self.diet != "none" and self.diet not in meal.dietaryFlags:
            return False
        if self.search:
            needle = self.search.lower()
            haystacks = (meal.title, meal.description or "")
            if not any(needle in h.lower() for h in haystacks):
                return False
        return True
