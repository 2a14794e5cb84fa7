# repository/meal_repository.py
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple
from redis.asyncio import Redis
from config.cache import get_redis
from model.meal import Meal, MealCreate, MealFilters
from repository.namespaces import MEAL_IDS, MEAL_SEQ, MEAL_STATS, MEALS
import logging

logger = logging.getLogger(__name__)

STAT_FIELDS = ("views", "aiGenerations", "imageGenerations")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MealRepository:
    """
    Redis-backed meal catalog.

    Flow:
    - Each meal is one JSON document keyed by id; ids come from an INCR sequence.
    - A sorted set (score == id) keeps listing order stable.
    - Counters (views, AI and image generations) live in a per-meal hash.
    """

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(meal_id: int) -> str:
        return f"{MEALS}:{meal_id}"

    @staticmethod
    def _stats_key(meal_id: int) -> str:
        return f"{MEAL_STATS}:{meal_id}"

    @staticmethod
    def _decode(raw: Optional[bytes]) -> Optional[Meal]:
        if raw is None:
            return None
        try:
            return Meal.model_validate_json(raw)
        except Exception:
            logger.error("meal.decode.error", exc_info=True)
            return None

    # ---------------- Reads ----------------

    async def get(self, meal_id: int) -> Optional[Meal]:
        r = await self._client()
        return self._decode(await r.get(self._key(meal_id)))

    async def get_many(self, meal_ids: Iterable[int]) -> List[Meal]:
        """
        Fetch meals in the order given, silently dropping unknown ids.
        """
        ids = list(meal_ids)
        if not ids:
            return []
        r = await self._client()
        raws = await r.mget([self._key(i) for i in ids])
        out: List[Meal] = []
        for raw in raws:
            meal = self._decode(raw)
            if meal is not None:
                out.append(meal)
        return out

    async def list(self, filters: Optional[MealFilters] = None) -> List[Meal]:
        r = await self._client()
        ids = await r.zrange(MEAL_IDS, 0, -1)
        meals = await self.get_many(int(i) for i in ids)
        if filters is None:
            return meals
        return [m for m in meals if filters.matches(m)]

    async def count(self) -> int:
        r = await self._client()
        return int(await r.zcard(MEAL_IDS))

    async def image_counts(self) -> Tuple[int, int]:
        """
        Return (total meals, meals that already have an image).
        """
        meals = await self.list()
        with_images = sum(1 for m in meals if m.imageUrl)
        return len(meals), with_images

    # ---------------- Writes ----------------

    async def create(self, data: MealCreate) -> Meal:
        r = await self._client()
        meal_id = int(await r.incr(MEAL_SEQ))
        meal = Meal(id=meal_id, **data.model_dump())
        async with r.pipeline(transaction=True) as pipe:
            pipe.set(self._key(meal_id), meal.model_dump_json().encode("utf-8"))
            pipe.zadd(MEAL_IDS, {str(meal_id): meal_id})
            pipe.hset(
                self._stats_key(meal_id),
                mapping=dict.fromkeys(STAT_FIELDS, 0),
            )
            await pipe.execute()
        logger.info("meal.create id=%d", meal_id)
        return meal

    async def update_image(self, meal_id: int, image_url: str) -> Optional[Meal]:
        """
        Point a meal at a new image. Writing the same URL twice is a no-op.
        """
        meal = await self.get(meal_id)
        if meal is None:
            return None
        if meal.imageUrl == image_url:
            return meal
        updated = meal.model_copy(
            update={"imageUrl": image_url, "updatedAt": _now()}
        )
        r = await self._client()
        await r.set(self._key(meal_id), updated.model_dump_json().encode("utf-8"))
        logger.info("meal.image.update id=%d", meal_id)
        return updated

    async def increment_view(self, meal_id: int) -> None:
        r = await self._client()
        await r.hincrby(self._stats_key(meal_id), "views", 1)

    async def increment_image_generation(self, meal_id: int) -> None:
        r = await self._client()
        await r.hincrby(self._stats_key(meal_id), "imageGenerations", 1)

    async def update(self, meal_id: int, changes: Dict[str, Any]) -> Optional[Meal]:
        """
        Apply a partial update. Returns None when the meal does not exist.
        """
        meal = await self.get(meal_id)
        if meal is None:
            return None
        merged = {**meal.model_dump(), **changes, "id": meal_id, "updatedAt": _now()}
        updated = Meal.model_validate(merged)
        r = await self._client()
        await r.set(self._key(meal_id), updated.model_dump_json().encode("utf-8"))
        logger.info("meal.update id=%d fields=%s", meal_id, ",".join(sorted(changes)))
        return updated

    async def delete(self, meal_id: int) -> bool:
        r = await self._client()
        async with r.pipeline(transaction=True) as pipe:
            pipe.delete(self._key(meal_id))
            pipe.zrem(MEAL_IDS, str(meal_id))
            pipe.delete(self._stats_key(meal_id))
            removed, _, _ = await pipe.execute()
        if removed:
            logger.info("meal.delete id=%d", meal_id)
        return bool(removed)

    # ---------------- Stats ----------------

    async def stats_for(self, meal_ids: Iterable[int]) -> Dict[int, Dict[str, int]]:
        """
        Counters per meal id; missing hashes read as all zeros.
        """
        ids = list(meal_ids)
        if not ids:
            return {}
        r = await self._client()
        async with r.pipeline(transaction=False) as pipe:
            for meal_id in ids:
                pipe.hgetall(self._stats_key(meal_id))
            rows = await pipe.execute()
        out: Dict[int, Dict[str, int]] = {}
        for meal_id, row in zip(ids, rows):
            counters = dict.fromkeys(STAT_FIELDS, 0)
            for field, value in (row or {}).items():
                name = field.decode("utf-8") if isinstance(field, bytes) else str(field)
                if name in counters:
                    counters[name] = int(value)
            out[meal_id] = counters
        return out
