# config/settings.py
import os
import sys
from typing import Optional
from dotenv import load_dotenv
from pydantic import AliasChoices, ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")
    SEED_ON_STARTUP: bool = Field(default=True, validation_alias="SEED_ON_STARTUP")

    # CORS, sessions & limits
    ALLOWED_ORIGIN: str = Field(..., validation_alias="ALLOWED_ORIGIN")
    SESSION_SECRET: str = Field(..., validation_alias="SESSION_SECRET")
    SESSION_MAX_AGE_SECONDS: int = Field(
        default=7 * 24 * 3600, validation_alias="SESSION_MAX_AGE_SECONDS"
    )
    RATE_LIMIT_TIMES: int = Field(default=10, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Admin. Left optional so the public catalog still boots without it;
    # admin routes answer 500 until it is set.
    ADMIN_PASSWORD: Optional[str] = Field(default=None, validation_alias="ADMIN_PASSWORD")

    # OpenAI image generation
    OPENAI_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "AI_INTEGRATIONS_OPENAI_API_KEY"),
    )
    OPENAI_BASE_URL: str = Field(
        default="https://api.openai.com/v1",
        validation_alias=AliasChoices("OPENAI_BASE_URL", "AI_INTEGRATIONS_OPENAI_BASE_URL"),
    )
    OPENAI_IMAGE_MODEL: str = Field(
        default="gpt-image-1", validation_alias="OPENAI_IMAGE_MODEL"
    )
    OPENAI_IMAGE_SIZE: str = Field(default="1024x1024", validation_alias="OPENAI_IMAGE_SIZE")
    OPENAI_TIMEOUT_SECONDS: float = Field(
        default=120.0, validation_alias="OPENAI_TIMEOUT_SECONDS"
    )

    # Image storage
    CLOUDINARY_CLOUD_NAME: Optional[str] = Field(
        default=None, validation_alias="CLOUDINARY_CLOUD_NAME"
    )
    CLOUDINARY_API_KEY: Optional[str] = Field(default=None, validation_alias="CLOUDINARY_API_KEY")
    CLOUDINARY_API_SECRET: Optional[str] = Field(
        default=None, validation_alias="CLOUDINARY_API_SECRET"
    )
    CLOUDINARY_FOLDER: str = Field(default="nomnomchow/meals", validation_alias="CLOUDINARY_FOLDER")
    LOCAL_IMAGE_DIR: str = Field(
        default=os.path.join("client", "public", "generated", "meals"),
        validation_alias="LOCAL_IMAGE_DIR",
    )
    LOCAL_IMAGE_URL_PREFIX: str = Field(
        default="/generated/meals", validation_alias="LOCAL_IMAGE_URL_PREFIX"
    )

    # Batch image job
    BATCH_THROTTLE_MS: int = Field(default=4000, validation_alias="BATCH_THROTTLE_MS")

    # Logging knobs
    LOGGER_NAME: str = "nomnomchow"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    MEAL_IMAGE_PROMPT: str = (
        'A realistic, home-cooked, kid-friendly meal: "{title}".\n'
        "Ingredients: {ingredients}.\n"
        "{hints}"
        "Style: Photorealistic, natural kitchen lighting, home-cooked weeknight dinner, "
        "simple plate or bowl, normal portion sizes.\n"
        "Rules: No fancy plating, no garnish, no restaurant presentation, no studio lighting.\n"
        "The image should look like a parent took a high-quality photo of a real dinner "
        "they just made."
    )

    @property
    def images_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    @property
    def cloudinary_configured(self) -> bool:
        return bool(
            self.CLOUDINARY_CLOUD_NAME
            and self.CLOUDINARY_API_KEY
            and self.CLOUDINARY_API_SECRET
        )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
