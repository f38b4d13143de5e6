"""
Artsy proxy router.

Provides REST API endpoints for:
- Artist search
- Artist details and similar artists
- Artworks of an artist and categories (genes) of an artwork

Only the similar-artists endpoint requires authentication.
"""

import structlog
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from backend.src.dependencies import get_artsy_gateway, get_auth_context
from backend.src.errors import ValidationError
from backend.src.models.artsy import (
    ArtistDetail, ArtistSearchResult, Artwork, Category, SimilarArtist, is_artsy_id
)
from backend.src.models.auth import AuthContext, CamelModel
from backend.src.services.artsy_client import ArtsyGateway

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/artsy", tags=["Artsy"])


class SearchResponse(CamelModel):
    results: List[ArtistSearchResult]


class ArtistResponse(CamelModel):
    artist: ArtistDetail


class SimilarArtistsResponse(CamelModel):
    similar_artists: List[SimilarArtist]


class ArtworksResponse(CamelModel):
    artworks: List[Artwork]


class CategoriesResponse(CamelModel):
    categories: List[Category]


def _require(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message)
    return value.strip()


def _require_id(value: Optional[str], label: str) -> str:
    """Blank ids are missing; anything outside the Artsy id alphabet is rejected."""
    value = _require(value, f"{label} is required")
    if not is_artsy_id(value):
        raise ValidationError(f"{label} is invalid")
    return value


@router.get("/search", response_model=SearchResponse)
async def search(
    q: Optional[str] = Query(default=None, description="Search text"),
    gateway: ArtsyGateway = Depends(get_artsy_gateway),
) -> SearchResponse:
    """Search artists by name."""
    query = _require(q, "Search query is required")
    results = await gateway.search_artists(query)
    logger.info("artists_searched", query=query, count=len(results))
    return SearchResponse(results=results)


@router.get("/artists/{artist_id}", response_model=ArtistResponse)
async def get_artist(
    artist_id: str,
    gateway: ArtsyGateway = Depends(get_artsy_gateway),
) -> ArtistResponse:
    artist_id = _require_id(artist_id, "Artist ID")
    artist = await gateway.get_artist_details(artist_id)
    return ArtistResponse(artist=artist)


@router.get("/artists/{artist_id}/similar", response_model=SimilarArtistsResponse)
async def get_similar(
    artist_id: str,
    context: AuthContext = Depends(get_auth_context),
    gateway: ArtsyGateway = Depends(get_artsy_gateway),
) -> SimilarArtistsResponse:
    """Similar artists; authenticated users only."""
    artist_id = _require_id(artist_id, "Artist ID")
    similar = await gateway.get_similar_artists(artist_id)
    logger.debug("similar_artists_fetched", artist_id=artist_id, user_id=context.user_id)
    return SimilarArtistsResponse(similar_artists=similar)


@router.get("/artists/{artist_id}/artworks", response_model=ArtworksResponse)
async def get_artworks(
    artist_id: str,
    gateway: ArtsyGateway = Depends(get_artsy_gateway),
) -> ArtworksResponse:
    artist_id = _require_id(artist_id, "Artist ID")
    return ArtworksResponse(artworks=await gateway.get_artworks_by_artist(artist_id))


@router.get("/artworks/{artwork_id}/categories", response_model=CategoriesResponse)
async def get_categories(
    artwork_id: str,
    gateway: ArtsyGateway = Depends(get_artsy_gateway),
) -> CategoriesResponse:
    artwork_id = _require_id(artwork_id, "Artwork ID")
    categories = await gateway.get_artwork_categories(artwork_id)
    logger.debug("categories_fetched", artwork_id=artwork_id, count=len(categories))
    return CategoriesResponse(categories=categories)
