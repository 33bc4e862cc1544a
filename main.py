from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import ConfigDict
from pydantic_settings import BaseSettings
from typing import Optional
import logging

from catalog_client import CatalogClient, CatalogError
from models import HistoryResponse, SearchResponse
from search_history import SearchHistory

# Composer module imports
from composer import (
    CompositeGenerator,
    ImageLoader,
    InvalidDimensions,
    ImageLoadError,
    CodeGenerationError,
    NoSelection,
    get_preset_options,
)
from composer.api_models import CompositeGenerateRequest, CompositeOptionsResponse

# Logging setup
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    history_path: str = "search-history.json"
    image_fetch_timeout: float = 15.0  # Seconds per upstream image fetch
    search_limit: int = 12  # Results per item type
    default_resolution: str = "square"

    model_config = ConfigDict(env_file=".env", extra="ignore")

settings = Settings()
app = FastAPI(title="Cover Code Composer", version="1.0.0")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Initialize services
catalog_client = CatalogClient(
    client_id=settings.spotify_client_id,
    client_secret=settings.spotify_client_secret,
)
search_history = SearchHistory(settings.history_path)
composite_generator = CompositeGenerator(
    loader=ImageLoader(timeout=settings.image_fetch_timeout)
)

@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "cover-code-composer"}

@app.get("/")
async def root():
    return {
        "service": "Cover Code Composer",
        "version": app.version,
        "description": "Catalog search + cover / scannable code / QR composite images",
        "endpoints": ["/api/search", "/api/history", "/composite/options", "/composite/generate", "/health"],
        "config": {
            "catalog_configured": catalog_client.is_configured,
            "default_resolution": settings.default_resolution,
        }
    }


# ==================== CATALOG SEARCH ENDPOINTS ====================

@app.get("/api/search", response_model=SearchResponse)
async def search_catalog(
    q: Optional[str] = None,
    type: Optional[str] = Query(default=None, description="Comma-joined item types"),
):
    """
    Search the catalog for albums, artists, playlists and tracks.

    Successful searches are recorded in the search history.
    """
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail='Parameter "q" is missing.')

    if not catalog_client.is_configured:
        logger.error("Configuration error: Spotify credentials missing")
        raise HTTPException(
            status_code=503,
            detail="Spotify API not configured. Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET.",
        )

    try:
        result = await catalog_client.search(q.strip(), types=type, limit=settings.search_limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogError as e:
        logger.error(f"Search error: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

    search_history.add(result.query)
    return result


@app.get("/api/history", response_model=HistoryResponse)
async def get_history():
    """Recent search terms, most recent first."""
    return HistoryResponse(terms=search_history.load())


@app.delete("/api/history", response_model=HistoryResponse)
async def clear_history():
    search_history.clear()
    logger.info("Search history cleared")
    return HistoryResponse(terms=[])


# ==================== COMPOSITE ENDPOINTS ====================

@app.get("/composite/options", response_model=CompositeOptionsResponse)
async def get_composite_options():
    """
    Get available options for composite generation.

    Returns available resolution presets.
    """
    return CompositeOptionsResponse(
        resolutions=get_preset_options(),
        default=settings.default_resolution,
    )


@app.post("/composite/generate")
async def generate_composite(request: CompositeGenerateRequest):
    """
    Generate the cover + scannable code + QR composite for the selected item.

    Returns:
        PNG attachment named spotify-<type>-<id>.png
    """
    try:
        result = await composite_generator.generate(
            request.item,
            preset=request.resolution or settings.default_resolution,
            custom_width=request.width,
            custom_height=request.height,
        )
    except (NoSelection, InvalidDimensions) as e:
        logger.warning(f"Composite rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except ImageLoadError as e:
        logger.error(f"Composite image load error: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except CodeGenerationError as e:
        logger.error(f"Composite code generation error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(f"Composite generated: {result.filename} ({result.resolution})")

    return Response(
        content=result.png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
