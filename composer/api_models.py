"""
Composite API models for FastAPI endpoints.
"""

from pydantic import BaseModel
from typing import Optional, List, Union

from models import CatalogItem


class CompositeGenerateRequest(BaseModel):
    """Request for composite generation."""
    item: Optional[CatalogItem] = None  # The selected search result
    resolution: Optional[str] = None  # Preset id ("square", "story", ...) or "WxH"
    width: Optional[Union[int, str]] = None  # Custom width, overrides the preset width
    height: Optional[Union[int, str]] = None  # Custom height, overrides the preset height


class CompositeOptionsResponse(BaseModel):
    """Response with available resolution presets."""
    resolutions: List[dict]
    default: str
