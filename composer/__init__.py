# Composite Generator Module
# Pure layout engine + Pillow renderer for cover / scannable code / QR images

from .errors import (
    CompositionError,
    InvalidDimensions,
    ImageLoadError,
    CodeGenerationError,
    NoSelection,
)
from .presets import ResolutionPresets, Resolution, resolve_resolution, get_preset_options
from .layout import LayoutEngine, DrawPlan, compute_layout
from .loader import ImageLoader, build_code_url
from .renderer import CompositeRenderer
from .generator import CompositeGenerator, CompositeResult

__all__ = [
    "CompositionError",
    "InvalidDimensions",
    "ImageLoadError",
    "CodeGenerationError",
    "NoSelection",
    "ResolutionPresets",
    "Resolution",
    "resolve_resolution",
    "get_preset_options",
    "LayoutEngine",
    "DrawPlan",
    "compute_layout",
    "ImageLoader",
    "build_code_url",
    "CompositeRenderer",
    "CompositeGenerator",
    "CompositeResult",
]
