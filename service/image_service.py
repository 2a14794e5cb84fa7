# service/image_service.py
from typing import Optional, Sequence
import httpx
from config.settings import Settings, settings as default_settings
from core.image_storage import save_locally, upload_to_cloudinary
from core.openai_images import ImageGenerationError, generate_image
from model.api import ImageResult
from util.errors import ConfigurationError
import logging

logger = logging.getLogger(__name__)


class ImageGenerationService:
    """
    Generates a photo for a meal and stores it (Cloudinary when configured,
    otherwise the local public folder).
    """

    def __init__(
        self,
        config: Settings = default_settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self._config.images_configured

    @property
    def cloudinary_configured(self) -> bool:
        return self._config.cloudinary_configured

    def build_prompt(
        self,
        title: str,
        ingredients: Sequence[str],
        cuisine: Optional[str] = None,
        skill_level: Optional[str] = None,
    ) -> str:
        hints = ""
        if cuisine:
            hints += f"Cuisine: {cuisine}.\n"
        if skill_level:
            hints += f"Cooked by a home cook ({skill_level.lower()} recipe).\n"
        return self._config.MEAL_IMAGE_PROMPT.format(
            title=title,
            ingredients=", ".join(ingredients) or "chef's choice",
            hints=hints,
        )

    async def generate_meal_image(
        self,
        title: str,
        ingredients: Sequence[str],
        cuisine: Optional[str] = None,
        skill_level: Optional[str] = None,
    ) -> ImageResult:
        """
        Upstream failures come back as ImageResult(success=False); only a
        missing API key raises.
        """
        if not self.is_configured:
            raise ConfigurationError("OpenAI API key not set")

        prompt = self.build_prompt(title, ingredients, cuisine, skill_level)
        try:
            image = await generate_image(
                api_key=self._config.OPENAI_API_KEY or "",
                base_url=self._config.OPENAI_BASE_URL,
                model=self._config.OPENAI_IMAGE_MODEL,
                prompt=prompt,
                size=self._config.OPENAI_IMAGE_SIZE,
                timeout=self._config.OPENAI_TIMEOUT_SECONDS,
                transport=self._transport,
            )
            url = await self._store(image.data)
        except httpx.HTTPStatusError as e:
            logger.error("image.upstream.status status=%d", e.response.status_code)
            return ImageResult(
                imageUrl="",
                success=False,
                error=f"Upstream error {e.response.status_code}",
            )
        except httpx.RequestError as e:
            logger.error("image.upstream.request_error err=%s", type(e).__name__)
            return ImageResult(
                imageUrl="", success=False, error=f"Request failed: {type(e).__name__}"
            )
        except (ImageGenerationError, ValueError, OSError) as e:
            logger.error("image.generate.error err=%s", e)
            return ImageResult(imageUrl="", success=False, error=str(e))

        logger.info("image.generate.ok title=%s", title)
        return ImageResult(imageUrl=url, success=True)

    async def _store(self, data: bytes) -> str:
        if self.cloudinary_configured:
            return await upload_to_cloudinary(
                data,
                cloud_name=self._config.CLOUDINARY_CLOUD_NAME or "",
                api_key=self._config.CLOUDINARY_API_KEY or "",
                api_secret=self._config.CLOUDINARY_API_SECRET or "",
                folder=self._config.CLOUDINARY_FOLDER,
                transport=self._transport,
            )
        return await save_locally(
            data,
            directory=self._config.LOCAL_IMAGE_DIR,
            url_prefix=self._config.LOCAL_IMAGE_URL_PREFIX,
        )
