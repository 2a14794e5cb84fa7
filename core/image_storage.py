# core/image_storage.py
import asyncio
import hashlib
import os
import time
from typing import Dict, Optional
from uuid import uuid4
import httpx
from util.constants import ExternalURIs
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


def cloudinary_signature(params: Dict[str, str], api_secret: str) -> str:
    """
    Cloudinary signed-upload signature: sha1 of the sorted `k=v&...` params
    with the API secret appended.
    """
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


async def upload_to_cloudinary(
    data: bytes,
    *,
    cloud_name: str,
    api_key: str,
    api_secret: str,
    folder: str,
    timeout: float = 60.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Upload PNG bytes and return the resulting https URL.
    """
    params = {"folder": folder, "timestamp": str(int(time.time()))}
    form = {
        **params,
        "api_key": api_key,
        "signature": cloudinary_signature(params, api_secret),
    }
    url = ExternalURIs.CLOUDINARY_UPLOAD.format(cloud_name=cloud_name)
    with timed(logger, "storage.cloudinary", bytes=len(data)):
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            r = await client.post(
                url, data=form, files={"file": ("meal.png", data, "image/png")}
            )
            r.raise_for_status()
            body = r.json()
    secure_url = str(body.get("secure_url") or "")
    if not secure_url:
        raise ValueError("Cloudinary upload returned no URL")
    return secure_url


def _unique_name() -> str:
    return f"{int(time.time() * 1000)}-{uuid4().hex[:7]}.png"


def _write(path: str, data: bytes) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


async def save_locally(data: bytes, *, directory: str, url_prefix: str) -> str:
    """
    Write PNG bytes under `directory` and return the public path for it.
    """
    name = _unique_name()
    path = os.path.join(directory, name)
    with timed(logger, "storage.local", bytes=len(data)):
        await asyncio.to_thread(_write, path, data)
    return f"{url_prefix.rstrip('/')}/{name}"
