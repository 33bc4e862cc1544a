import asyncio

import pytest
from PIL import Image

from composer.errors import CodeGenerationError, ImageLoadError
from composer.loader import ImageLoader
from models import CatalogItem

COVER_URL = "https://i.scdn.co/image/cover-abc123"
CODE_URL = "https://scannables.scdn.co/uri/plain/png/000000/white/1080/spotify%3Aalbum%3Aabc123"


class FakeLoader(ImageLoader):
    """ImageLoader that serves solid-color images instead of hitting the network."""

    def __init__(self, fail_urls=(), slow_qr=False):
        super().__init__(timeout=1.0)
        self.fail_urls = set(fail_urls)
        self.slow_qr = slow_qr
        self.requested = []
        self.qr_cancelled = False

    async def load_image(self, url):
        self.requested.append(url)
        if not url or url in self.fail_urls:
            raise ImageLoadError(f"Image could not be loaded: {url}")
        if "scannables" in url:
            return Image.new("RGBA", (640, 160), (0, 0, 0, 255))
        return Image.new("RGBA", (640, 640), (255, 0, 0, 255))

    async def generate_qr_image(self, text, size=300):
        self.requested.append(("qr", text))
        if not text:
            raise CodeGenerationError("QR code could not be generated: nothing to encode.")
        if self.slow_qr:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                self.qr_cancelled = True
                raise
        return Image.new("RGB", (size, size), (0, 255, 0))


@pytest.fixture
def sample_item():
    return CatalogItem(
        id="abc123",
        type="album",
        name="Random Access Memories",
        subtitle="Daft Punk",
        url="https://open.spotify.com/album/abc123",
        uri="spotify:album:abc123",
        cover_image_url=COVER_URL,
        code_image_url=CODE_URL,
    )


@pytest.fixture
def fake_loader():
    return FakeLoader()
