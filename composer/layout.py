"""
LayoutEngine - Geometry for the cover / scannable code / QR composite.

Handles:
1. Scale-independent margins and gaps derived from the target width
2. A square cover block, centered at the top
3. The scannable code block below the cover, keeping its aspect ratio
4. The QR block below the code, shrunk together with the code on overflow
5. Title/subtitle placement to the right of the QR block

The engine is pure: it only reads image sizes and returns a DrawPlan.
Painting is done by CompositeRenderer.
"""

import math
from typing import Any, List, Optional, Union
from dataclasses import dataclass, field

from models import CatalogItem
from .errors import InvalidDimensions

BACKGROUND_COLOR = "#ffffff"
TITLE_COLOR = "#0b1020"
SUBTITLE_COLOR = "#334155"

MIN_QR_SIZE = 48
MIN_SHRINK_SCALE = 0.3
MAX_TEXT_COLUMN = 120


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class FontSpec:
    """Font request for a text run."""
    size: int
    bold: bool = False


@dataclass
class FillOp:
    """Solid rectangle fill."""
    color: str
    x: int
    y: int
    w: int
    h: int
    kind: str = field(default="fill", init=False)


@dataclass
class ImageOp:
    """Draw `source` stretched to exactly w x h at (x, y)."""
    role: str           # "cover", "code" or "qr"
    source: Any
    x: int
    y: int
    w: int
    h: int
    kind: str = field(default="image", init=False)


@dataclass
class TextOp:
    """Draw `content` with its left baseline at (x, y)."""
    content: str
    x: int
    y: int
    font: FontSpec
    color: str
    max_width: int      # room before the right margin
    kind: str = field(default="text", init=False)


DrawOp = Union[FillOp, ImageOp, TextOp]


@dataclass
class DrawPlan:
    """Ordered draw operations, back to front."""
    width: int
    height: int
    operations: List[DrawOp] = field(default_factory=list)

    def image(self, role: str) -> Optional[ImageOp]:
        for op in self.operations:
            if isinstance(op, ImageOp) and op.role == role:
                return op
        return None

    @property
    def cover(self) -> Optional[ImageOp]:
        return self.image("cover")

    @property
    def code(self) -> Optional[ImageOp]:
        return self.image("code")

    @property
    def qr(self) -> Optional[ImageOp]:
        return self.image("qr")

    @property
    def texts(self) -> List[TextOp]:
        return [op for op in self.operations if isinstance(op, TextOp)]


class LayoutEngine:
    """
    Calculates the composite layout for a single catalog item.

    Features:
    - Cover always rendered square, stretched (never cropped)
    - Code and QR keep their own aspect ratios
    - Uniform shrink of code + QR when they do not fit vertically
    - Minimum scannable QR size of 48px
    """

    def __init__(
        self,
        margin_ratio: float = 0.08,
        gap_ratio: float = 0.04,
        cover_height_ratio: float = 0.55,
        qr_ratio: float = 0.22,
    ):
        """
        Initialize layout engine.

        Args:
            margin_ratio: Outer margin as a fraction of the target width
            gap_ratio: Gap between blocks as a fraction of the target width
            cover_height_ratio: Maximum cover side as a fraction of the target height
            qr_ratio: Initial QR side as a fraction of the cover side
        """
        self.margin_ratio = margin_ratio
        self.gap_ratio = gap_ratio
        self.cover_height_ratio = cover_height_ratio
        self.qr_ratio = qr_ratio

    @staticmethod
    def _validate(width: Any, height: Any) -> None:
        for name, value in (("width", width), ("height", height)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidDimensions(f"Target {name} must be a positive integer, got {value!r}")

    def compute_layout(
        self,
        item: CatalogItem,
        cover_img: Any,
        code_img: Any,
        qr_img: Any,
        target_width: int,
        target_height: int,
    ) -> DrawPlan:
        """
        Arrange cover, code, QR and text on a target_width x target_height canvas.

        Args:
            item: Selected catalog item (name and subtitle are used)
            cover_img: Cover art image (anything with width/height)
            code_img: Scannable code image
            qr_img: QR code image
            target_width: Canvas width in pixels
            target_height: Canvas height in pixels

        Returns:
            DrawPlan with fill, cover, code, QR and text operations in paint order

        Raises:
            InvalidDimensions: if either target dimension is not positive
        """
        self._validate(target_width, target_height)
        width, height = target_width, target_height

        # Step 1: Spacing derived from width only
        margin = round_half_up(width * self.margin_ratio)
        gap = round_half_up(width * self.gap_ratio)
        available_width = width - margin * 2

        # Step 2: Square cover, centered horizontally
        cover_side = max(1, round_half_up(min(height * self.cover_height_ratio, available_width)))
        cover_x = round_half_up((width - cover_side) / 2)
        cover_y = margin

        # Step 3: Code keeps its aspect ratio, never larger than the cover in either axis
        code_aspect = code_img.width / code_img.height
        code_width = float(cover_side)
        code_height = code_width / code_aspect
        if code_height > cover_side:
            code_height = float(cover_side)
            code_width = code_height * code_aspect

        code_x = cover_x
        code_y = cover_y + cover_side + gap

        # Step 4: QR starts at 22% of the cover
        qr_size = float(min(cover_side, round_half_up(cover_side * self.qr_ratio)))

        # Step 5: Shrink code and QR together if they overflow the bottom margin
        space_after_code = height - code_y - code_height - margin
        if space_after_code < qr_size + gap:
            # The gap keeps its size, so only the two blocks share the remaining room
            available = height - code_y - margin
            scale = max(MIN_SHRINK_SCALE, (available - gap) / (code_height + qr_size))
            code_height = code_height * scale
            code_width = code_width * scale
            qr_size = qr_size * scale

        code_width = max(1, round_half_up(code_width))
        code_height = max(1, round_half_up(code_height))
        qr_size = round_half_up(qr_size)

        # Step 6: Leave a text column to the right of the QR
        text_column = round_half_up(min(available_width * 0.25, MAX_TEXT_COLUMN))
        if qr_size > available_width - text_column - gap:
            qr_size = max(MIN_QR_SIZE, available_width - text_column - gap)

        # Hard floor, applied after every other adjustment
        qr_size = max(MIN_QR_SIZE, qr_size)

        qr_x = cover_x
        qr_y = code_y + code_height + gap

        plan = DrawPlan(width=width, height=height)
        plan.operations.append(FillOp(color=BACKGROUND_COLOR, x=0, y=0, w=width, h=height))
        plan.operations.append(ImageOp(role="cover", source=cover_img, x=cover_x, y=cover_y, w=cover_side, h=cover_side))
        plan.operations.append(ImageOp(role="code", source=code_img, x=code_x, y=code_y, w=code_width, h=code_height))
        plan.operations.append(ImageOp(role="qr", source=qr_img, x=qr_x, y=qr_y, w=qr_size, h=qr_size))

        # Step 7: Name above and subtitle below the QR midpoint
        text_x = qr_x + qr_size + gap
        text_center_y = qr_y + qr_size / 2
        max_text_width = max(0, width - margin - text_x)

        plan.operations.append(TextOp(
            content=item.name,
            x=text_x,
            y=round_half_up(text_center_y - round_half_up(width * 0.01)),
            font=FontSpec(size=round_half_up(max(12, width * 0.028)), bold=True),
            color=TITLE_COLOR,
            max_width=max_text_width,
        ))

        if item.subtitle:
            plan.operations.append(TextOp(
                content=item.subtitle,
                x=text_x,
                y=round_half_up(text_center_y + round_half_up(width * 0.02)),
                font=FontSpec(size=round_half_up(max(10, width * 0.018))),
                color=SUBTITLE_COLOR,
                max_width=max_text_width,
            ))

        return plan


_default_engine = LayoutEngine()


def compute_layout(
    item: CatalogItem,
    cover_img: Any,
    code_img: Any,
    qr_img: Any,
    target_width: int,
    target_height: int,
) -> DrawPlan:
    """Compute a DrawPlan with the default layout ratios."""
    return _default_engine.compute_layout(
        item, cover_img, code_img, qr_img, target_width, target_height
    )
