"""
CompositeGenerator - Main orchestrator for composite generation.

Combines:
- ImageLoader: cover art, scannable code and QR code (concurrent)
- LayoutEngine: pure geometry
- CompositeRenderer: Pillow painting and PNG export

This is the main entry point for the composite feature.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

from PIL import Image

from models import CatalogItem
from .errors import NoSelection
from .layout import LayoutEngine, DrawPlan
from .loader import ImageLoader, placeholder_cover
from .presets import Resolution, resolve_resolution
from .renderer import CompositeRenderer

logger = logging.getLogger(__name__)

QR_SOURCE_SIZE = 300


@dataclass
class CompositeResult:
    """A finished composition, ready for download."""
    image: Image.Image
    png: bytes
    filename: str
    resolution: Resolution
    plan: DrawPlan


def download_filename(item: CatalogItem) -> str:
    """File name offered for download, named by item type and id."""
    item_type = getattr(item.type, "value", item.type)
    return f"spotify-{item_type}-{item.id or 'motiv'}.png"


class CompositeGenerator:
    """
    Main orchestrator for composite generation.

    Workflow:
    1. Check a catalog item was selected
    2. Resolve and validate the output resolution
    3. Load cover, code and QR concurrently (fan-out / fan-in)
    4. Calculate layout (pure geometry)
    5. Render and export PNG

    The generator keeps no per-composition state; the selected item is
    passed in on every call.
    """

    def __init__(
        self,
        loader: Optional[ImageLoader] = None,
        layout_engine: Optional[LayoutEngine] = None,
        renderer: Optional[CompositeRenderer] = None,
    ):
        """Initialize generator with all components."""
        self.loader = loader or ImageLoader()
        self.layout_engine = layout_engine or LayoutEngine()
        self.renderer = renderer or CompositeRenderer()

    async def _load_cover(self, item: CatalogItem) -> Image.Image:
        if not item.cover_image_url:
            logger.warning(f"{item.type.value} {item.id} has no cover art, using placeholder")
            return placeholder_cover()
        return await self.loader.load_image(item.cover_image_url)

    async def _load_code(self, item: CatalogItem) -> Image.Image:
        if item.code_image_url:
            return await self.loader.load_image(item.code_image_url)
        return await self.loader.generate_scannable_code_image(item.uri)

    async def load_sources(self, item: CatalogItem):
        """
        Load cover, code and QR images concurrently.

        The first failure cancels the loads still in flight and is re-raised
        unchanged; no partial result is returned.

        Returns:
            Tuple of (cover, code, qr) images
        """
        tasks = [
            asyncio.create_task(self._load_cover(item)),
            asyncio.create_task(self._load_code(item)),
            asyncio.create_task(self.loader.generate_qr_image(item.url, QR_SOURCE_SIZE)),
        ]
        try:
            cover, code, qr = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            # Let cancelled loads unwind before surfacing the first error
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return cover, code, qr

    async def generate(
        self,
        item: Optional[CatalogItem],
        preset: Optional[str] = None,
        custom_width: Union[int, str, None] = None,
        custom_height: Union[int, str, None] = None,
    ) -> CompositeResult:
        """
        Generate the composite for the selected item.

        Args:
            item: Selected catalog item
            preset: Resolution preset id or "WxH"
            custom_width: Optional width override
            custom_height: Optional height override

        Returns:
            CompositeResult with the rendered image and its PNG encoding

        Raises:
            NoSelection: item is None (raised before any network call)
            InvalidDimensions: resolution invalid (raised before loading)
            ImageLoadError: cover or code image failed to load
            CodeGenerationError: QR or scannable code generation failed
        """
        if item is None:
            raise NoSelection("Please select an item first.")

        # Step 1: Determine dimensions
        resolution = resolve_resolution(preset, custom_width, custom_height)
        logger.info(f"Generating composite for {item.type.value} {item.id} at {resolution}")

        # Step 2: Load sources (fan-out / fan-in)
        cover, code, qr = await self.load_sources(item)

        # Step 3: Layout
        plan = self.layout_engine.compute_layout(
            item, cover, code, qr, resolution.width, resolution.height
        )
        logger.info(
            f"Layout: cover {plan.cover.w}px, code {plan.code.w}x{plan.code.h}, qr {plan.qr.w}px"
        )

        # Step 4: Render + export
        image = self.renderer.render(plan)
        png = self.renderer.export(image, format="PNG")

        logger.info("Composite generation complete!")
        return CompositeResult(
            image=image,
            png=png,
            filename=download_filename(item),
            resolution=resolution,
            plan=plan,
        )
