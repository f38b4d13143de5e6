"""
Shared fixtures: test settings, in-memory repositories and a fake Artsy
gateway, plus a FastAPI TestClient wired to them through dependency
overrides. No MongoDB or network access is needed.
"""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Tuple

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from backend.src.config import Settings
from backend.src.dependencies import (
    get_artsy_gateway,
    get_favorite_repository,
    get_settings_dependency,
    get_user_repository,
)
from backend.src.errors import DuplicateEmailError, DuplicateFavoriteError, UpstreamRequestError
from backend.src.main import create_app
from backend.src.models.artsy import (
    ArtistDetail, ArtistSearchResult, Artwork, Category, SimilarArtist
)
from backend.src.models.auth import UserDB, normalize_email
from backend.src.models.favorite import Favorite
from backend.src.services.auth_service import AuthService
from backend.src.services.favorite_service import FavoriteService


# ============================================================================
# TEST CONFIGURATION
# ============================================================================


def make_settings(**overrides) -> Settings:
    values = dict(
        environment="development",
        jwt_secret="test-secret-key-do-not-use-in-production-32",
        password_bcrypt_rounds=4,
        artsy_api_base="https://artsy.test/api",
        artsy_web_url="https://www.artsy.test",
        artsy_client_id="client-id",
        artsy_client_secret="client-secret",
        log_format="text",
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


# ============================================================================
# IN-MEMORY TEST DOUBLES
# ============================================================================


class InMemoryUserRepository:
    """Stand-in for UserRepository keyed by normalized email."""

    def __init__(self):
        self.users: Dict[str, UserDB] = {}

    async def create_user(self, fullname, email, password_hash, profile_image_url=""):
        email = normalize_email(email)
        if any(u.email == email for u in self.users.values()):
            raise DuplicateEmailError()
        user = UserDB(
            id=str(ObjectId()),
            fullname=fullname.strip(),
            email=email,
            password_hash=password_hash,
            profile_image_url=profile_image_url,
            created_at=datetime.now(timezone.utc),
        )
        self.users[user.id] = user
        return user

    async def get_user_by_id(self, user_id):
        return self.users.get(user_id)

    async def get_user_by_email(self, email):
        email = normalize_email(email)
        return next((u for u in self.users.values() if u.email == email), None)

    async def delete_user(self, user_id):
        return self.users.pop(user_id, None) is not None


class InMemoryFavoriteRepository:
    """Stand-in for FavoriteRepository with the (user, artist) uniqueness rule."""

    def __init__(self):
        self.items: Dict[Tuple[str, str], Favorite] = {}
        self._clock = itertools.count()
        self._base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    async def list_by_user(self, user_id):
        mine = [f for (uid, _), f in self.items.items() if uid == user_id]
        return sorted(mine, key=lambda f: f.added_at, reverse=True)

    async def find(self, user_id, artist_id):
        return self.items.get((user_id, artist_id))

    async def create(self, user_id, artist_id, artist_name, image_url="",
                     nationality="", birthday="", deathday=""):
        if (user_id, artist_id) in self.items:
            raise DuplicateFavoriteError()
        favorite = Favorite(
            id=str(ObjectId()),
            user_id=user_id,
            artist_id=artist_id,
            artist_name=artist_name,
            image_url=image_url,
            nationality=nationality,
            birthday=birthday,
            deathday=deathday,
            added_at=self._base + timedelta(seconds=next(self._clock)),
        )
        self.items[(user_id, artist_id)] = favorite
        return favorite

    async def delete(self, user_id, artist_id):
        return self.items.pop((user_id, artist_id), None)

    async def delete_all_for_user(self, user_id):
        keys = [key for key in self.items if key[0] == user_id]
        for key in keys:
            del self.items[key]
        return len(keys)


class FakeArtsyGateway:
    """Canned Artsy responses; unknown artist ids fail like the real gateway."""

    def __init__(self):
        self.artists: Dict[str, ArtistDetail] = {
            "4d8b92b34eb68a1b2c0003f4": ArtistDetail(
                id="4d8b92b34eb68a1b2c0003f4",
                name="Pablo Picasso",
                birthday="1881",
                deathday="1973",
                nationality="Spanish",
                biography="Spanish painter",
                image_url="https://d32dm0rphc51dk.cloudfront.net/picasso/four_thirds.jpg",
                links={"self": {"href": "https://artsy.test/api/artists/4d8b92b34eb68a1b2c0003f4"}},
            ),
            "4d8b928b4eb68a1b2c0001f2": ArtistDetail(
                id="4d8b928b4eb68a1b2c0001f2",
                name="Andy Warhol",
                nationality="American",
                birthday="1928",
                deathday="1987",
                image_url="artsy_logo.svg",
            ),
        }
        self.calls: List[Tuple[str, str]] = []

    async def search_artists(self, query):
        self.calls.append(("search_artists", query))
        return [
            ArtistSearchResult(id=a.id, title=a.name, image_url=a.image_url, links=a.links)
            for a in self.artists.values()
            if query.lower() in a.name.lower()
        ]

    async def get_artist_details(self, artist_id):
        self.calls.append(("get_artist_details", artist_id))
        if artist_id not in self.artists:
            raise UpstreamRequestError("get_artist_details", "404 Not Found")
        return self.artists[artist_id]

    async def get_similar_artists(self, artist_id):
        self.calls.append(("get_similar_artists", artist_id))
        return [
            SimilarArtist(**a.model_dump(exclude={"biography"}))
            for a in self.artists.values()
            if a.id != artist_id
        ]

    async def get_artworks_by_artist(self, artist_id):
        self.calls.append(("get_artworks_by_artist", artist_id))
        if artist_id != "4d8b92b34eb68a1b2c0003f4":
            return []
        return [Artwork(id="516dfb9ab31e2b2270000c45", title="Guernica", date="1937", image_url="artsy_logo.svg")]

    async def get_artwork_categories(self, artwork_id):
        self.calls.append(("get_artwork_categories", artwork_id))
        return [
            Category(
                id="4d90d191dcdd5f44a5000004",
                name="Cubism",
                description="See [Picasso](https://www.artsy.test/artist/pablo-picasso)",
                image_url="artsy_logo.svg",
            )
        ]


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def favorite_repo() -> InMemoryFavoriteRepository:
    return InMemoryFavoriteRepository()


@pytest.fixture
def gateway() -> FakeArtsyGateway:
    return FakeArtsyGateway()


@pytest.fixture
def auth_service(user_repo, favorite_repo, settings) -> AuthService:
    return AuthService(user_repo, favorite_repo, settings)


@pytest.fixture
def favorite_service(favorite_repo, gateway) -> FavoriteService:
    return FavoriteService(favorite_repo, gateway)


@pytest.fixture
def app(settings, user_repo, favorite_repo, gateway):
    application = create_app(settings)
    application.dependency_overrides[get_settings_dependency] = lambda: settings
    application.dependency_overrides[get_user_repository] = lambda: user_repo
    application.dependency_overrides[get_favorite_repository] = lambda: favorite_repo
    application.dependency_overrides[get_artsy_gateway] = lambda: gateway
    return application


@pytest.fixture
def client(app) -> TestClient:
    # Not used as a context manager: the lifespan would connect to MongoDB.
    return TestClient(app)


def register(client: TestClient, email: str = "ada@example.com", password: str = "secret",
             fullname: str = "Ada Lovelace"):
    return client.post(
        "/api/auth/register",
        json={"fullname": fullname, "email": email, "password": password},
    )


@pytest.fixture
def authed_client(client) -> TestClient:
    response = register(client)
    assert response.status_code == 200
    return client
