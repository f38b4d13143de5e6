"""
Unit tests for the X-App token cache.

Tests cover:
- Empty cache behaviour
- Expiry boundary (a token is unusable at exactly ``expires_at``)
- Replacement and clearing
"""

from backend.src.services.token_cache import TokenCache


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class TestTokenCache:
    """Test single-slot token caching."""

    def test_empty_cache_is_expired(self):
        cache = TokenCache(clock=FakeClock())

        assert cache.is_expired()
        assert cache.get() is None
        assert cache.expires_at is None

    def test_set_then_get(self):
        clock = FakeClock()
        cache = TokenCache(clock=clock)

        entry = cache.set("tok-1", 3600)

        assert entry.expires_at == 4600.0
        assert cache.get() == "tok-1"
        assert not cache.is_expired()

    def test_valid_just_before_expiry(self):
        clock = FakeClock()
        cache = TokenCache(clock=clock)
        cache.set("tok-1", 60)

        clock.advance(59.999)

        assert cache.get() == "tok-1"

    def test_expired_at_boundary(self):
        clock = FakeClock()
        cache = TokenCache(clock=clock)
        cache.set("tok-1", 60)

        clock.advance(60)

        assert cache.is_expired()
        assert cache.get() is None

    def test_set_replaces_previous_token(self):
        clock = FakeClock()
        cache = TokenCache(clock=clock)
        cache.set("tok-1", 60)
        clock.advance(120)

        cache.set("tok-2", 60)

        assert cache.get() == "tok-2"
        assert cache.expires_at == 1180.0

    def test_clear(self):
        cache = TokenCache(clock=FakeClock())
        cache.set("tok-1", 60)

        cache.clear()

        assert cache.get() is None

    def test_defaults_to_wall_clock(self):
        cache = TokenCache()
        cache.set("tok", 3600)

        assert cache.get() == "tok"
