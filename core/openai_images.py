# core/openai_images.py
import base64
import binascii
from typing import Any, Dict, Optional
import httpx
from core.entities import GeneratedImage
from util.constants import ExternalURIs
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


class ImageGenerationError(Exception):
    """The image API answered, but without usable image data."""


async def _post_json(
    url: str,
    headers: Dict[str, str],
    payload: Dict[str, Any],
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Make a JSON POST to `url`. Raises for non-2xx. Returns parsed JSON dict or {} on parse failure.
    """
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        r = await client.post(url, headers=headers, json=payload)
        r.raise_for_status()
        try:
            return r.json()
        except ValueError:
            return {}


async def generate_image(
    *,
    api_key: str,
    base_url: str,
    model: str,
    prompt: str,
    size: str = "1024x1024",
    timeout: float = 120.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GeneratedImage:
    """
    Ask the OpenAI Images API for one picture and return its decoded bytes.
    """
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    payload: Dict[str, Any] = {"model": model, "prompt": prompt, "size": size, "n": 1}
    # gpt-image models always answer in base64; dall-e needs to be asked
    if model.startswith("dall-e"):
        payload["response_format"] = "b64_json"

    url = base_url.rstrip("/") + ExternalURIs.OPENAI_IMAGES
    with timed(logger, "ai.image", model=model, size=size):
        data = await _post_json(url, headers, payload, timeout, transport)

    node: Dict[str, Any] = {}
    items = data.get("data") or []
    if items and isinstance(items, list) and isinstance(items[0], dict):
        node = items[0]

    b64 = node.get("b64_json")
    if not b64:
        raise ImageGenerationError("Failed to generate image data")
    try:
        raw = base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError):
        raise ImageGenerationError("Image data was not valid base64")

    logger.info("ai.image.ok model=%s bytes=%d", model, len(raw))
    return GeneratedImage(data=raw, model=model, revised_prompt=node.get("revised_prompt"))
