"""
CompositeRenderer - Pillow-based execution of a DrawPlan.

Handles:
1. Creating the canvas from the background fill
2. Stretching each image to its planned box and pasting it
3. Drawing title/subtitle text, ellipsized to the room it was given
4. Exporting the final image
"""

import io
import logging
from typing import Dict, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from .layout import DrawPlan, FillOp, FontSpec, ImageOp, TextOp

logger = logging.getLogger(__name__)

ELLIPSIS = "…"

BOLD_FONT_PATHS = [
    "/System/Library/Fonts/Helvetica.ttc",  # macOS
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",  # Linux
    "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",  # Arch
    "C:\\Windows\\Fonts\\arialbd.ttf",  # Windows
]

REGULAR_FONT_PATHS = [
    "/System/Library/Fonts/Helvetica.ttc",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "C:\\Windows\\Fonts\\arial.ttf",
]

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


def clean_text(s: str) -> str:
    """Collapse whitespace (incl newlines) to single spaces."""
    return " ".join((s or "").split())


def ellipsize(text: str, font: FontType, max_width: float) -> str:
    """
    Shorten `text` with a trailing ellipsis until it fits max_width.

    Returns "" when not even the ellipsis fits.
    """
    text = clean_text(text)
    if font.getlength(text) <= max_width:
        return text
    if font.getlength(ELLIPSIS) > max_width:
        return ""

    lo, hi = 0, len(text)
    best = ELLIPSIS
    while lo <= hi:
        mid = (lo + hi) // 2
        candidate = text[:mid].rstrip() + ELLIPSIS
        if font.getlength(candidate) <= max_width:
            best = candidate
            lo = mid + 1
        else:
            hi = mid - 1
    return best


class CompositeRenderer:
    """
    Renders DrawPlans using Pillow.

    The renderer never decides geometry; it paints exactly what the plan says,
    in order. The only adjustment it makes is shortening text that would run
    past its max_width.
    """

    def __init__(self, font_path: Optional[str] = None, bold_font_path: Optional[str] = None):
        """
        Initialize renderer.

        Args:
            font_path: Optional TrueType font for regular text
            bold_font_path: Optional TrueType font for bold text
        """
        self.font_path = font_path
        self.bold_font_path = bold_font_path
        self._fonts: Dict[Tuple[int, bool], FontType] = {}

    def _get_font(self, spec: FontSpec) -> FontType:
        """Get (cached) font for text rendering."""
        key = (spec.size, spec.bold)
        if key in self._fonts:
            return self._fonts[key]

        configured = self.bold_font_path if spec.bold else self.font_path
        candidates = ([configured] if configured else []) + (
            BOLD_FONT_PATHS if spec.bold else REGULAR_FONT_PATHS
        )

        font: Optional[FontType] = None
        for fp in candidates:
            try:
                font = ImageFont.truetype(fp, spec.size)
                break
            except OSError:
                if fp == configured:
                    logger.warning(f"Failed to load font {fp}, falling back to system fonts")
                continue

        if font is None:
            font = ImageFont.load_default(size=spec.size)

        self._fonts[key] = font
        return font

    def _create_canvas(self, plan: DrawPlan) -> Image.Image:
        first = plan.operations[0] if plan.operations else None
        color = first.color if isinstance(first, FillOp) else "#ffffff"
        return Image.new("RGB", (plan.width, plan.height), color)

    def _draw_fill(self, canvas: Image.Image, op: FillOp) -> None:
        draw = ImageDraw.Draw(canvas)
        draw.rectangle([op.x, op.y, op.x + op.w - 1, op.y + op.h - 1], fill=op.color)

    def _draw_image(self, canvas: Image.Image, op: ImageOp) -> None:
        # Stretch to the planned box; aspect handling is the layout's job
        resized = op.source.resize((op.w, op.h), Image.Resampling.LANCZOS)
        if resized.mode == "RGBA":
            canvas.paste(resized, (op.x, op.y), resized)
        else:
            canvas.paste(resized.convert("RGB"), (op.x, op.y))

    def _draw_text(self, canvas: Image.Image, op: TextOp) -> None:
        font = self._get_font(op.font)
        text = ellipsize(op.content, font, op.max_width)
        if not text:
            logger.warning(f"No room for text {op.content[:40]!r} at x={op.x}")
            return
        if text != clean_text(op.content):
            logger.info(f"Shortened text to fit {op.max_width}px: {text!r}")

        draw = ImageDraw.Draw(canvas)
        draw.text((op.x, op.y), text, font=font, fill=op.color, anchor="ls")

    def render(self, plan: DrawPlan) -> Image.Image:
        """
        Execute every operation of the plan on a fresh canvas.

        Args:
            plan: DrawPlan from LayoutEngine

        Returns:
            Rendered RGB image of plan.width x plan.height
        """
        canvas = self._create_canvas(plan)

        for op in plan.operations:
            if isinstance(op, FillOp):
                self._draw_fill(canvas, op)
            elif isinstance(op, ImageOp):
                self._draw_image(canvas, op)
            elif isinstance(op, TextOp):
                self._draw_text(canvas, op)
            else:
                raise TypeError(f"Unknown draw operation: {op!r}")

        return canvas

    def export(
        self,
        image: Image.Image,
        output_path: Optional[str] = None,
        format: str = "PNG",
        quality: int = 95
    ) -> Union[bytes, str]:
        """
        Export composite to file or bytes.

        Args:
            image: Rendered composite
            output_path: Optional file path. If None, returns bytes.
            format: Image format (PNG, JPEG, WEBP)
            quality: JPEG/WEBP quality (1-100)

        Returns:
            File path if output_path given, else bytes
        """
        if output_path:
            image.save(output_path, format=format, quality=quality)
            logger.info(f"Exported composite to {output_path}")
            return output_path

        buffer = io.BytesIO()
        image.save(buffer, format=format, quality=quality)
        return buffer.getvalue()
