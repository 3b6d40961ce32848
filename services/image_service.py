"""
Image resolution for document assembly.

Each line item ends up with exactly one image: its inline base64 image, else
its fetched image URL, else the placeholder. Fetch failures never fail the
document.
"""

import asyncio
import base64
import binascii
from io import BytesIO
from pathlib import Path
from typing import Optional

import httpx
import structlog
from docx.image.image import Image
from PIL import Image as PILImage

from config import settings
from exceptions import ImageFetchError
from models.render import LineItem

logger = structlog.get_logger(__name__)

MIN_INLINE_LENGTH = 10

PLACEHOLDER_WIDTH = 132
PLACEHOLDER_HEIGHT = 113


def is_valid_image(data: Optional[bytes]) -> bool:
    """True when python-docx recognizes the bytes as an embeddable image."""
    if not data:
        return False
    try:
        Image.from_blob(data)
    except Exception:
        return False
    return True


def decode_inline_image(value: Optional[str]) -> Optional[bytes]:
    """
    Decode an inline base64 image (optionally a data: URI).

    Returns:
        Image bytes, or None if too short, not base64, or not an image
    """
    if not value or len(value) <= MIN_INLINE_LENGTH:
        return None

    if value.startswith("data:") and "," in value:
        value = value.split(",", 1)[1]

    try:
        data = base64.b64decode(value.strip())
    except (binascii.Error, ValueError):
        return None

    return data if is_valid_image(data) else None


def make_placeholder_png(
    width: int = PLACEHOLDER_WIDTH,
    height: int = PLACEHOLDER_HEIGHT,
    grey: int = 0xDD,
) -> bytes:
    """Solid light-grey 8-bit greyscale PNG."""
    output = BytesIO()
    PILImage.new("L", (width, height), grey).save(output, "PNG")
    return output.getvalue()


def load_placeholder_image(path: Optional[str] = None) -> bytes:
    """
    Read the placeholder image once at startup.

    Falls back to a generated grey PNG when the asset is missing or unusable.
    """
    path = path or settings.placeholder_image_path
    file_path = Path(path)

    if file_path.is_file():
        data = file_path.read_bytes()
        if is_valid_image(data):
            logger.info("placeholder_image_loaded", path=str(file_path), size_bytes=len(data))
            return data
        logger.warning("placeholder_image_invalid", path=str(file_path))
    else:
        logger.warning("placeholder_image_missing", path=str(file_path))

    return make_placeholder_png()


class ImageResolver:
    """
    Resolves line item images concurrently.

    Pass an httpx.AsyncClient to share a connection pool (or a mock
    transport in tests); otherwise one client is opened per resolve_all.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self._client = client
        self.timeout = timeout or settings.http_timeout_seconds

    async def fetch(self, url: str, client: httpx.AsyncClient) -> bytes:
        """
        Download an image.

        Raises:
            ImageFetchError: On HTTP errors, timeouts, or non-image bodies
        """
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ImageFetchError(url, f"{type(e).__name__}: {str(e)}")

        if not is_valid_image(response.content):
            raise ImageFetchError(url, "Response is not a recognized image")
        return response.content

    async def resolve_source(self, item: LineItem, client: httpx.AsyncClient) -> Optional[bytes]:
        """Inline image, else fetched URL; None when the placeholder is needed."""
        inline = decode_inline_image(item.image)
        if inline:
            return inline

        url = (item.image_url or "").strip()
        if url:
            try:
                return await self.fetch(url, client)
            except ImageFetchError as e:
                logger.warning(
                    "image_fetch_failed",
                    code=item.code,
                    url=url,
                    error=e.message
                )

        return None

    async def resolve_all(self, items: list[LineItem], placeholder: bytes) -> list[bytes]:
        """One image per item, same order as items."""
        if self._client is not None:
            return await self._gather(items, placeholder, self._client)

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await self._gather(items, placeholder, client)

    async def _gather(self, items: list[LineItem], placeholder: bytes, client: httpx.AsyncClient) -> list[bytes]:
        sources = await asyncio.gather(*(self.resolve_source(item, client) for item in items))
        logger.info(
            "images_resolved",
            items=len(items),
            placeholders=sum(1 for image in sources if image is None)
        )
        return [placeholder if image is None else image for image in sources]
