"""
Output resolution presets for composite generation.

Supports common target formats:
- Square / Portrait feed images
- Vertical story format
- Landscape and UHD wallpapers
- Print (A4 @ 300 dpi)
- Custom dimensions (per-axis overrides)
"""

import re
from enum import Enum
from typing import Tuple, Optional, Union
from dataclasses import dataclass

from .errors import InvalidDimensions


class ResolutionPresets(Enum):
    """Named output resolutions."""

    SQUARE = "square"          # 1:1
    PORTRAIT = "portrait"      # 4:5
    STORY = "story"            # 9:16 vertical
    LANDSCAPE = "landscape"    # 16:9
    PRINT_A4 = "print_a4"      # A4 portrait, 300 dpi
    UHD = "uhd"                # 3840x2160


@dataclass(frozen=True)
class Resolution:
    """A validated output resolution."""
    width: int
    height: int

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass
class ResolutionSpec:
    """Preset resolution with display metadata."""
    width: int
    height: int
    aspect_ratio: str
    description: str

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)


PRESET_RESOLUTIONS = {
    ResolutionPresets.SQUARE: ResolutionSpec(
        width=1080, height=1080,
        aspect_ratio="1:1",
        description="Square (1080x1080)"
    ),
    ResolutionPresets.PORTRAIT: ResolutionSpec(
        width=1080, height=1350,
        aspect_ratio="4:5",
        description="Portrait (1080x1350)"
    ),
    ResolutionPresets.STORY: ResolutionSpec(
        width=1080, height=1920,
        aspect_ratio="9:16",
        description="Story / Phone wallpaper"
    ),
    ResolutionPresets.LANDSCAPE: ResolutionSpec(
        width=1920, height=1080,
        aspect_ratio="16:9",
        description="Landscape Full HD"
    ),
    ResolutionPresets.PRINT_A4: ResolutionSpec(
        width=2480, height=3508,
        aspect_ratio="1:1.414",
        description="A4 print (300 dpi)"
    ),
    ResolutionPresets.UHD: ResolutionSpec(
        width=3840, height=2160,
        aspect_ratio="16:9",
        description="4K UHD"
    ),
}

DEFAULT_PRESET = ResolutionPresets.SQUARE

# Largest accepted side, in pixels (an 8192x8192 RGB canvas is ~200 MB)
MAX_DIMENSION = 8192


def parse_dimension_string(dim_str: str) -> Optional[Tuple[int, int]]:
    """
    Parse dimension string like "1080x1920" or "2160 x 3840".

    Args:
        dim_str: Dimension string in WxH format

    Returns:
        Tuple of (width, height) or None if parsing fails
    """
    # Match patterns like "1080x1920", "1080 x 1920", "1080×1920"
    match = re.fullmatch(r'(\d+)\s*[x×]\s*(\d+)', dim_str.strip(), re.IGNORECASE)
    if match:
        return (int(match.group(1)), int(match.group(2)))

    return None


def _preset_size(preset: Optional[str]) -> Tuple[int, int]:
    if not preset:
        return PRESET_RESOLUTIONS[DEFAULT_PRESET].size

    parsed = parse_dimension_string(preset)
    if parsed:
        return parsed

    preset_lower = preset.strip().lower().replace("-", "_").replace(" ", "_")
    for p, spec in PRESET_RESOLUTIONS.items():
        if p.value == preset_lower:
            return spec.size

    raise InvalidDimensions(f"Unknown resolution preset: {preset!r}")


def _custom_value(value: Union[int, str, None], axis: str) -> Optional[int]:
    """Return the override for one axis, or None when the field was left empty."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = int(value)
        except ValueError:
            raise InvalidDimensions(f"Invalid {axis}: {value!r} is not a number")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidDimensions(f"Invalid {axis}: {value!r} is not a whole number")
    if value <= 0:
        raise InvalidDimensions(f"Invalid {axis}: {value} must be positive")
    return value


def resolve_resolution(
    preset: Optional[str] = None,
    custom_width: Union[int, str, None] = None,
    custom_height: Union[int, str, None] = None,
) -> Resolution:
    """
    Resolve the output resolution from a preset and optional custom values.

    Each custom value, when given, overrides its own axis of the preset.

    Args:
        preset: Preset id (e.g. "story") or "WxH" string. Defaults to square.
        custom_width: Optional width override
        custom_height: Optional height override

    Returns:
        Validated Resolution

    Raises:
        InvalidDimensions: unknown preset, a non-positive / non-numeric value,
            or a side larger than MAX_DIMENSION

    Examples:
        >>> resolve_resolution("story").size
        (1080, 1920)
        >>> resolve_resolution("story", custom_width=720).size
        (720, 1920)
    """
    width, height = _preset_size(preset)

    override_w = _custom_value(custom_width, "width")
    override_h = _custom_value(custom_height, "height")
    if override_w is not None:
        width = override_w
    if override_h is not None:
        height = override_h

    if width <= 0 or height <= 0:
        raise InvalidDimensions(f"Invalid resolution: {width}x{height}")
    if width > MAX_DIMENSION or height > MAX_DIMENSION:
        raise InvalidDimensions(
            f"Resolution {width}x{height} too large (max {MAX_DIMENSION}px per side)"
        )

    return Resolution(width=width, height=height)


def get_preset_options() -> list:
    """Get list of available preset options for user selection."""
    return [
        {
            "id": preset.value,
            "name": spec.description,
            "dimensions": f"{spec.width}x{spec.height}",
            "aspect_ratio": spec.aspect_ratio
        }
        for preset, spec in PRESET_RESOLUTIONS.items()
    ]
