from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ItemType(str, Enum):
    """Catalog item kinds that can be searched and composed"""
    ALBUM = "album"
    ARTIST = "artist"
    PLAYLIST = "playlist"
    TRACK = "track"


ALL_ITEM_TYPES = [t.value for t in ItemType]


class CatalogItem(BaseModel):
    """A single normalized search result (immutable once selected)"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: ItemType
    name: str
    subtitle: Optional[str] = None
    url: Optional[str] = None                   # Public link, encoded in the QR code
    uri: Optional[str] = None                   # Catalog URI, e.g. spotify:album:<id>
    cover_image_url: Optional[str] = Field(default=None, alias="coverUrl")
    code_image_url: Optional[str] = Field(default=None, alias="codeUrl")


class SearchResponse(BaseModel):
    """Normalized catalog search results"""
    query: str
    type: str
    count: int
    results: List[CatalogItem]


class HistoryResponse(BaseModel):
    """Recent search terms, most recent first"""
    terms: List[str] = Field(default_factory=list)
