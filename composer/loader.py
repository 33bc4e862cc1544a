"""
ImageLoader - Fetches and generates the three images a composite needs.

Handles:
1. Downloading and decoding cover art / scannable code images (httpx + Pillow)
2. Generating QR codes for the item URL (qrcode)
3. A neutral placeholder when an item has no cover art

Every fetch uses an explicit timeout, so a stalled upstream fails the
composition with ImageLoadError instead of hanging it.
"""

import io
import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import httpx
import qrcode
from qrcode.exceptions import DataOverflowError
from PIL import Image, UnidentifiedImageError

from .errors import ImageLoadError, CodeGenerationError

logger = logging.getLogger(__name__)

SCANNABLES_URL = "https://scannables.scdn.co/uri/plain/png"

QR_DARK_COLOR = "#0b1020"
QR_LIGHT_COLOR = "#ffffff"
PLACEHOLDER_COLOR = "#cccccc"


def build_code_url(
    uri: str,
    background: str = "000000",
    bar_color: str = "white",
    size: int = 1080
) -> str:
    """
    Build the scannable code image URL for a catalog URI.

    Args:
        uri: Catalog URI, e.g. "spotify:album:4aawyAB9vmqN3uQ7FjRGTy"
        background: Hex background color without '#'
        bar_color: Bar color name or hex
        size: Image width in pixels

    Returns:
        URL of a PNG rendering of the code
    """
    return f"{SCANNABLES_URL}/{background}/{bar_color}/{size}/{quote(uri, safe='')}"


def placeholder_cover(size: int = 640) -> Image.Image:
    """Grey square used in place of missing cover art."""
    return Image.new("RGB", (size, size), PLACEHOLDER_COLOR)


class ImageLoader:
    """
    Async image source for compositions.

    Network and decoding failures raise ImageLoadError; QR and scannable
    code failures raise CodeGenerationError.
    """

    def __init__(
        self,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize loader.

        Args:
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    async def load_image(self, url: Optional[str]) -> Image.Image:
        """
        Download and decode a raster image.

        Args:
            url: Image URL

        Returns:
            Decoded RGBA image

        Raises:
            ImageLoadError: on missing URL, network error, non-2xx status
                or a payload Pillow cannot decode
        """
        if not url:
            raise ImageLoadError("Image could not be loaded: no URL given.")

        logger.info(f"Loading image: {url[:80]}")

        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                content = response.content
        except httpx.TimeoutException as e:
            logger.error(f"Image fetch timed out after {self.timeout}s: {url[:80]}")
            raise ImageLoadError(f"Image could not be loaded (timeout): {url}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Image fetch failed: {e}")
            raise ImageLoadError(f"Image could not be loaded: {e}") from e

        try:
            image = Image.open(io.BytesIO(content))
            image.load()
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
            logger.error(f"Image decode failed for {url[:80]}: {e}")
            raise ImageLoadError(f"Image could not be decoded: {url}") from e

        return image.convert("RGBA")

    async def generate_scannable_code_image(self, uri: Optional[str]) -> Image.Image:
        """
        Fetch the scannable code rendering for a catalog URI.

        Raises:
            CodeGenerationError: if there is no URI or the code image cannot be loaded
        """
        if not uri:
            raise CodeGenerationError("Scannable code could not be generated: item has no URI.")

        try:
            return await self.load_image(build_code_url(uri))
        except ImageLoadError as e:
            raise CodeGenerationError(f"Scannable code could not be generated: {e}") from e

    @staticmethod
    def _make_qr(text: str, size: int) -> Image.Image:
        qr = qrcode.QRCode(
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=10,
            border=1,
        )
        qr.add_data(text)
        qr.make(fit=True)

        img = qr.make_image(fill_color=QR_DARK_COLOR, back_color=QR_LIGHT_COLOR).convert("RGB")
        if img.size != (size, size):
            img = img.resize((size, size), Image.NEAREST)
        return img

    async def generate_qr_image(self, text: Optional[str], size: int = 300) -> Image.Image:
        """
        Generate a QR code image encoding `text`.

        Args:
            text: Data to encode (the item URL)
            size: Output side length in pixels

        Raises:
            CodeGenerationError: if text is empty or cannot be encoded
        """
        if not text:
            raise CodeGenerationError("QR code could not be generated: nothing to encode.")

        try:
            return await asyncio.to_thread(self._make_qr, text, size)
        except (ValueError, DataOverflowError) as e:
            logger.error(f"QR generation failed: {e}")
            raise CodeGenerationError(f"QR code could not be generated: {e}") from e
