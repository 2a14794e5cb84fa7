# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    TEST = "test"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    UNAUTHORIZED = ErrorInfo("Unauthorized", status.HTTP_401_UNAUTHORIZED)
    INVALID_PASSWORD = ErrorInfo("Invalid password", status.HTTP_401_UNAUTHORIZED)
    ADMIN_NOT_CONFIGURED = ErrorInfo(
        "Server configuration error: Admin password not set.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    IMAGES_NOT_CONFIGURED = ErrorInfo(
        "Image generation is not configured: OpenAI API key not set.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    BATCH_ALREADY_RUNNING = ErrorInfo(
        "A batch image job is already in progress", status.HTTP_409_CONFLICT
    )
    MEAL_NOT_FOUND = ErrorInfo("Meal not found", status.HTTP_404_NOT_FOUND)
    RATE_LIMITED = ErrorInfo(
        "Too many image requests. Try again shortly.",
        status.HTTP_429_TOO_MANY_REQUESTS,
    )
