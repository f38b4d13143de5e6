"""
Artsy API access layer.

Provides:
- CredentialBroker: exchanges client credentials for an X-App token and
  reuses it until it expires
- ArtsyGateway: authenticated search/detail/similarity/listing calls whose
  payloads are mapped through the normalizer

Every call is issued once; nothing is retried. Token exchange failures
surface as ``UpstreamAuthError`` from the broker; inside a gateway call they
are wrapped, with every other failure, in ``UpstreamRequestError``.
"""

import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import structlog
from prometheus_client import Counter, Histogram

from backend.src.config import Settings, get_settings
from backend.src.errors import UpstreamAuthError, UpstreamRequestError
from backend.src.models.artsy import (
    ArtistDetail,
    ArtistSearchResult,
    Artwork,
    Category,
    SimilarArtist,
)
from backend.src.services.artsy_normalizer import ArtsyNormalizer
from backend.src.services.token_cache import TokenCache

logger = structlog.get_logger(__name__)

TOKEN_HEADER = "X-Xapp-Token"

artsy_requests_total = Counter(
    "artsy_requests_total",
    "Upstream Artsy API requests",
    ["operation", "outcome"]
)

artsy_request_duration_seconds = Histogram(
    "artsy_request_duration_seconds",
    "Upstream Artsy API request duration in seconds",
    ["operation"]
)

artsy_token_exchanges_total = Counter(
    "artsy_token_exchanges_total",
    "X-App token exchanges with the Artsy API",
    ["outcome"]
)


class CredentialBroker:
    """Obtains and caches the short-lived X-App token."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: Optional[TokenCache] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the broker.

        Args:
            http_client: Shared async HTTP client
            cache: Token slot; a fresh one is created when omitted
            settings: Application settings (defaults to the cached settings)
        """
        self.http_client = http_client
        self.cache = cache or TokenCache()
        self.settings = settings or get_settings()

    async def get_token(self) -> str:
        """
        Return a usable X-App token.

        Serves the cached token while it is valid. Otherwise performs one
        credential exchange and caches the result for the configured window.

        Returns:
            Token string

        Raises:
            UpstreamAuthError: If the credential exchange fails
        """
        cached = self.cache.get()
        if cached is not None:
            return cached

        url = f"{self.settings.artsy_api_base}/tokens/xapp_token"
        try:
            response = await self.http_client.post(
                url,
                json={
                    "client_id": self.settings.artsy_client_id,
                    "client_secret": self.settings.artsy_client_secret,
                },
            )
            response.raise_for_status()
            token = response.json()["token"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            artsy_token_exchanges_total.labels(outcome="failure").inc()
            logger.error("artsy_token_exchange_failed", error=str(e))
            raise UpstreamAuthError() from e

        entry = self.cache.set(token, self.settings.artsy_token_ttl_seconds)
        artsy_token_exchanges_total.labels(outcome="success").inc()
        logger.info("artsy_token_refreshed", expires_at=entry.expires_at)
        return token


class ArtsyGateway:
    """Authenticated, normalized access to the Artsy endpoints the app uses."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        broker: CredentialBroker,
        normalizer: Optional[ArtsyNormalizer] = None,
        settings: Optional[Settings] = None,
    ):
        self.http_client = http_client
        self.broker = broker
        self.settings = settings or get_settings()
        self.normalizer = normalizer or ArtsyNormalizer(
            web_url=self.settings.artsy_web_url,
            default_image=self.settings.artsy_default_image,
            missing_image_path=self.settings.artsy_missing_image_path,
        )

    async def _get(
        self,
        operation: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Issue one authenticated GET and return the decoded JSON body."""
        try:
            token = await self.broker.get_token()
        except UpstreamAuthError as e:
            artsy_requests_total.labels(operation=operation, outcome="failure").inc()
            raise UpstreamRequestError(operation, str(e)) from e
        url = f"{self.settings.artsy_api_base}{path}"

        start_time = time.time()
        try:
            response = await self.http_client.get(
                url,
                params=params,
                headers={TOKEN_HEADER: token},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            artsy_requests_total.labels(operation=operation, outcome="failure").inc()
            logger.error("artsy_request_failed", operation=operation, path=path, error=str(e))
            raise UpstreamRequestError(operation, str(e)) from e
        finally:
            artsy_request_duration_seconds.labels(operation=operation).observe(
                time.time() - start_time
            )

        if not isinstance(data, dict):
            artsy_requests_total.labels(operation=operation, outcome="failure").inc()
            raise UpstreamRequestError(operation, "unexpected response body")

        artsy_requests_total.labels(operation=operation, outcome="success").inc()
        logger.debug("artsy_request_completed", operation=operation, path=path)
        return data

    @staticmethod
    def _embedded(data: Dict[str, Any], key: str) -> Optional[List[Dict[str, Any]]]:
        embedded = data.get("_embedded")
        if not isinstance(embedded, dict):
            return None
        items = embedded.get(key)
        return items if isinstance(items, list) else None

    def _normalize(self, operation: str, mapper, payload):
        try:
            return mapper(payload)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            logger.error("artsy_payload_malformed", operation=operation, error=str(e))
            raise UpstreamRequestError(operation, f"malformed payload: {e}") from e

    async def _list(
        self,
        operation: str,
        path: str,
        params: Dict[str, Any],
        key: str,
        mapper,
        **log_context: Any,
    ) -> list:
        data = await self._get(operation, path, params)
        items = self._embedded(data, key)
        if items is None:
            logger.warning("artsy_embedded_collection_missing", operation=operation, key=key, **log_context)
            return []
        return [self._normalize(operation, mapper, item) for item in items]

    async def search_artists(self, query: str) -> List[ArtistSearchResult]:
        """Search artists by free text."""
        return await self._list(
            "search_artists",
            "/search",
            {"q": query, "type": "artist", "size": self.settings.artsy_page_size},
            "results",
            self.normalizer.artist_search_result,
            query=query,
        )

    async def get_artist_details(self, artist_id: str) -> ArtistDetail:
        """Fetch one artist with biography."""
        data = await self._get("get_artist_details", f"/artists/{quote(artist_id, safe='')}")
        return self._normalize("get_artist_details", self.normalizer.artist_detail, data)

    async def get_similar_artists(self, artist_id: str) -> List[SimilarArtist]:
        """Artists Artsy considers similar to ``artist_id``."""
        return await self._list(
            "get_similar_artists",
            "/artists",
            {"similar_to_artist_id": artist_id, "size": self.settings.artsy_page_size},
            "artists",
            self.normalizer.similar_artist,
            artist_id=artist_id,
        )

    async def get_artworks_by_artist(self, artist_id: str) -> List[Artwork]:
        return await self._list(
            "get_artworks_by_artist",
            "/artworks",
            {"artist_id": artist_id, "size": self.settings.artsy_page_size},
            "artworks",
            self.normalizer.artwork,
            artist_id=artist_id,
        )

    async def get_artwork_categories(self, artwork_id: str) -> List[Category]:
        """Genes (categories) attached to an artwork."""
        return await self._list(
            "get_artwork_categories",
            "/genes",
            {"artwork_id": artwork_id},
            "genes",
            self.normalizer.category,
            artwork_id=artwork_id,
        )
