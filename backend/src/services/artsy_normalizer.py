"""
Normalization of Artsy API payloads.

Pure functions that map the heterogeneous HAL-style JSON returned by the
Artsy API onto the DTOs in ``backend.src.models.artsy``. No I/O happens
here; the same input always yields the same output.
"""

import re
from typing import Any, Dict, Optional

from backend.src.models.artsy import (
    ArtistDetail,
    ArtistSearchResult,
    Artwork,
    Category,
    SimilarArtist,
)

DEFAULT_IMAGE = "artsy_logo.svg"
MISSING_IMAGE_PATH = "/assets/shared/missing_image.png"

# "cubist- painting": a word split across a line wrap in the source text
_WRAPPED_HYPHEN = re.compile(r"(\w+)- (\w+)")
# [link text](/relative/path)
_RELATIVE_MARKDOWN_LINK = re.compile(r"\[(.*?)\]\((/[^)]+)\)")

_EN_DASH = "\u2013"
_LEGACY_DASH = "\u0096"
_EM_DASH = "\u2014"


def extract_id_from_self_link(href: str) -> str:
    """Return the last ``/``-delimited segment of a self link."""
    return href.split("/")[-1]


def resolve_image_url(
    links: Optional[Dict[str, Any]],
    default_image: str = DEFAULT_IMAGE,
    missing_image_path: str = MISSING_IMAGE_PATH,
) -> str:
    """
    Pick the display image for an entity.

    Uses the thumbnail href unless it is absent or points at Artsy's own
    "missing image" placeholder, in which case the local default asset is
    returned.
    """
    thumbnail = (links or {}).get("thumbnail") or {}
    href = thumbnail.get("href")
    if not href or href == missing_image_path:
        return default_image
    return href


def format_biography(biography: Optional[str]) -> str:
    """
    Repair biography text.

    Joins words hyphenated across line wraps ("cubist- painting" becomes
    "cubistpainting"), turns en dashes into plain hyphens and the legacy
    0x96 control character into an em dash.
    """
    if not biography:
        return ""
    fixed = _WRAPPED_HYPHEN.sub(r"\1\2", biography)
    return fixed.replace(_EN_DASH, "-").replace(_LEGACY_DASH, _EM_DASH)


def rewrite_description_links(description: Optional[str], web_url: str) -> str:
    """Make site-relative Markdown links absolute against ``web_url``."""
    if not description:
        return ""
    base = web_url.rstrip("/")
    return _RELATIVE_MARKDOWN_LINK.sub(
        lambda m: f"[{m.group(1)}]({base}{m.group(2)})",
        description,
    )


def _self_id(item: Dict[str, Any]) -> str:
    return extract_id_from_self_link(item["_links"]["self"]["href"])


class ArtsyNormalizer:
    """
    Bundles the shape formatters with the image and link settings they need.

    The module-level helpers stay usable on their own; this class only
    carries configuration so the gateway does not thread it through calls.
    """

    def __init__(
        self,
        web_url: str,
        default_image: str = DEFAULT_IMAGE,
        missing_image_path: str = MISSING_IMAGE_PATH,
    ):
        self.web_url = web_url
        self.default_image = default_image
        self.missing_image_path = missing_image_path

    def image_url(self, links: Optional[Dict[str, Any]]) -> str:
        return resolve_image_url(links, self.default_image, self.missing_image_path)

    def artist_search_result(self, item: Dict[str, Any]) -> ArtistSearchResult:
        return ArtistSearchResult(
            id=_self_id(item),
            title=item.get("title") or "",
            links=item["_links"],
            image_url=self.image_url(item["_links"]),
        )

    def similar_artist(self, item: Dict[str, Any]) -> SimilarArtist:
        return SimilarArtist(
            id=_self_id(item),
            name=item.get("name") or "",
            birthday=item.get("birthday") or "",
            deathday=item.get("deathday") or "",
            nationality=item.get("nationality") or "",
            links=item["_links"],
            image_url=self.image_url(item["_links"]),
        )

    def artist_detail(self, item: Dict[str, Any]) -> ArtistDetail:
        similar = self.similar_artist(item)
        return ArtistDetail(
            **similar.model_dump(),
            biography=format_biography(item.get("biography")),
        )

    def artwork(self, item: Dict[str, Any]) -> Artwork:
        return Artwork(
            id=_self_id(item),
            title=item.get("title") or "",
            date=item.get("date") or "",
            links=item["_links"],
            image_url=self.image_url(item["_links"]),
        )

    def category(self, item: Dict[str, Any]) -> Category:
        return Category(
            id=_self_id(item),
            name=item.get("name") or "",
            description=rewrite_description_links(item.get("description"), self.web_url),
            links=item["_links"],
            image_url=self.image_url(item["_links"]),
        )
