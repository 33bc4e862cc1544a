"""
CatalogClient - Spotify Web API search for albums, artists, playlists and tracks.

Uses the client-credentials flow (app token, no user login). The token is
cached until shortly before it expires.
"""

import os
import time
import asyncio
import logging
from typing import Optional, List, Iterable

import httpx

from composer.loader import build_code_url
from models import ALL_ITEM_TYPES, CatalogItem, ItemType, SearchResponse

logger = logging.getLogger(__name__)

TOKEN_URL = "https://accounts.spotify.com/api/token"
SEARCH_URL = "https://api.spotify.com/v1/search"

# Refresh this many seconds before the upstream expiry
TOKEN_REFRESH_MARGIN = 60

# Upstream response keys, in result order
RESULT_SECTIONS = [
    ("albums", ItemType.ALBUM),
    ("artists", ItemType.ARTIST),
    ("playlists", ItemType.PLAYLIST),
    ("tracks", ItemType.TRACK),
]


class CatalogError(RuntimeError):
    """Upstream catalog request failed."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


def _first_image_url(images: Optional[list]) -> Optional[str]:
    if images:
        return images[0].get("url")
    return None


def _artist_names(artists: Optional[list]) -> Optional[str]:
    if not artists:
        return None
    return ", ".join(a.get("name", "") for a in artists if a)


def map_item(item: dict, item_type: ItemType) -> CatalogItem:
    """
    Normalize one upstream search result.

    Album/track subtitles list the artists, artists read "Artist" and
    playlists name their owner. Tracks take their cover from their album.
    """
    uri = item.get("uri")

    if item_type in (ItemType.ALBUM, ItemType.TRACK):
        album = item.get("album")
        images = album.get("images") if album else item.get("images")
        cover_url = _first_image_url(images)
        subtitle = _artist_names(item.get("artists"))
    elif item_type == ItemType.ARTIST:
        cover_url = _first_image_url(item.get("images"))
        subtitle = "Artist"
    else:
        cover_url = _first_image_url(item.get("images"))
        owner = (item.get("owner") or {}).get("display_name")
        subtitle = f"Playlist • {owner}" if owner else "Playlist"

    return CatalogItem(
        id=item.get("id") or "",
        type=item_type,
        name=item.get("name") or "",
        subtitle=subtitle,
        url=(item.get("external_urls") or {}).get("spotify"),
        uri=uri,
        cover_image_url=cover_url,
        code_image_url=build_code_url(uri) if uri else None,
    )


def normalize_types(types: Optional[Iterable[str]] = None) -> str:
    """
    Validate requested item types and join them for the search request.

    Args:
        types: Comma-joined string or iterable of type names. Empty means all.

    Raises:
        ValueError: on an unknown type
    """
    if types is None:
        return ",".join(ALL_ITEM_TYPES)
    if isinstance(types, str):
        types = types.split(",")

    requested = []
    for t in types:
        t = t.strip().lower()
        if not t:
            continue
        if t not in ALL_ITEM_TYPES:
            raise ValueError(f"Unknown item type: {t!r}. Expected one of {', '.join(ALL_ITEM_TYPES)}")
        if t not in requested:
            requested.append(t)

    return ",".join(requested or ALL_ITEM_TYPES)


class CatalogClient:
    """
    Spotify search client.

    Environment Variables:
        SPOTIFY_CLIENT_ID: App client id
        SPOTIFY_CLIENT_SECRET: App client secret
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            client_id: Spotify client id. Defaults to SPOTIFY_CLIENT_ID env var.
            client_secret: Spotify client secret. Defaults to SPOTIFY_CLIENT_SECRET env var.
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.client_id = client_id or os.getenv("SPOTIFY_CLIENT_ID")
        self.client_secret = client_secret or os.getenv("SPOTIFY_CLIENT_SECRET")
        self.timeout = timeout
        self.transport = transport

        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._token_lock = asyncio.Lock()

        if not self.client_id or not self.client_secret:
            logger.warning("SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET not set - catalog search will fail")

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def _token_valid(self, now: float) -> bool:
        return bool(self._token) and self._expires_at > now + TOKEN_REFRESH_MARGIN

    async def get_access_token(self) -> str:
        """
        Return a cached app token, fetching a new one when it is about to expire.

        Raises:
            ValueError: credentials not configured
            CatalogError: token endpoint returned an error
        """
        async with self._token_lock:
            now = time.time()
            if self._token_valid(now):
                return self._token

            if not self.is_configured:
                raise ValueError(
                    "Spotify API not configured. "
                    "Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET environment variables."
                )

            logger.info("Requesting new Spotify access token")
            try:
                async with self._client() as client:
                    response = await client.post(
                        TOKEN_URL,
                        data={"grant_type": "client_credentials"},
                        auth=(self.client_id, self.client_secret),
                    )
            except httpx.HTTPError as e:
                logger.error(f"Spotify token request error: {e}")
                raise CatalogError(f"Spotify token request failed: {e}")

            if response.is_error:
                logger.error(f"Spotify token error: {response.status_code} {response.text}")
                raise CatalogError(
                    f"Spotify token error: {response.status_code} {response.text}",
                    status_code=500,
                )

            data = response.json()
            self._token = data["access_token"]
            self._expires_at = now + int(data.get("expires_in", 3600))
            return self._token

    async def search(
        self,
        query: str,
        types: Optional[Iterable[str]] = None,
        limit: int = 12
    ) -> SearchResponse:
        """
        Search the catalog.

        Args:
            query: Free-text query
            types: Item types to search (comma-joined or iterable). Default: all.
            limit: Maximum results per type

        Returns:
            SearchResponse with results ordered albums, artists, playlists, tracks

        Raises:
            ValueError: empty query, unknown type or missing credentials
            CatalogError: upstream request failed (status_code mirrors upstream)
        """
        if not query or not query.strip():
            raise ValueError('Parameter "q" is missing.')

        type_param = normalize_types(types)
        token = await self.get_access_token()

        params = {"q": query, "type": type_param, "limit": limit}
        logger.info(f"Searching catalog: '{query}' (types={type_param})")

        try:
            async with self._client() as client:
                response = await client.get(
                    SEARCH_URL,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Spotify search error: {e}")
            raise CatalogError(f"Spotify search failed: {e}")

        if response.is_error:
            logger.error(f"Spotify search failed: {response.status_code} {response.text}")
            raise CatalogError(
                f"Spotify search failed: {response.text}",
                status_code=response.status_code,
            )

        data = response.json()
        results: List[CatalogItem] = []
        for key, item_type in RESULT_SECTIONS:
            section = data.get(key) or {}
            for item in section.get("items") or []:
                # Playlist sections can contain null entries
                if not item:
                    continue
                results.append(map_item(item, item_type))

        logger.info(f"Found {len(results)} results")

        return SearchResponse(
            query=query,
            type=type_param,
            count=len(results),
            results=results,
        )
