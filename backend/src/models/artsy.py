"""
Normalized Artsy data transfer objects.

These models are produced per request by the normalizer and are never
persisted. Field names are snake_case in Python and camelCase on the wire;
the raw upstream ``_links`` block is passed through unchanged.
"""

import re
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


ARTSY_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def is_artsy_id(value: str) -> bool:
    """Artsy ids and slugs use letters, digits, hyphens and underscores only."""
    return ARTSY_ID_PATTERN.fullmatch(value) is not None


class ArtsyModel(BaseModel):
    """Base for Artsy DTOs: camelCase aliases, constructible by field name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Artsy id taken from the self link")
    links: Dict[str, Any] = Field(default_factory=dict, alias="_links")
    image_url: str = Field(..., description="Thumbnail URL or the default asset")


class ArtistSearchResult(ArtsyModel):
    title: str = ""


class SimilarArtist(ArtsyModel):
    name: str = ""
    birthday: str = ""
    deathday: str = ""
    nationality: str = ""


class ArtistDetail(SimilarArtist):
    biography: str = ""


class Artwork(ArtsyModel):
    title: str = ""
    date: str = ""


class Category(ArtsyModel):
    name: str = ""
    description: str = ""
