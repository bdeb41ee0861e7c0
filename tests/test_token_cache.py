"""Tests for the per-device token cache."""

import pytest

from core.token_cache import TokenCache
from models.print_job import Credentials


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def credentials():
    return Credentials(token="tok", printer_id="printer-1", expires_in=3600)


class TestDisabledCache:

    def test_zero_ttl_is_disabled(self):
        assert TokenCache().enabled is False

    def test_put_is_noop(self, credentials):
        cache = TokenCache(ttl_seconds=0)
        cache.put("dev", credentials)
        assert cache.get("dev") is None
        assert cache.clear() == 0


class TestEnabledCache:

    def test_get_returns_stored(self, clock, credentials):
        cache = TokenCache(ttl_seconds=300, clock=clock)
        cache.put("dev", credentials)

        assert cache.get("dev") is credentials
        assert cache.get("other") is None

    def test_entry_expires_after_ttl(self, clock, credentials):
        cache = TokenCache(ttl_seconds=300, clock=clock)
        cache.put("dev", credentials)

        clock.now += 299
        assert cache.get("dev") is credentials

        clock.now += 1
        assert cache.get("dev") is None

    def test_provider_expiry_caps_lifetime(self, clock):
        cache = TokenCache(ttl_seconds=3600, clock=clock)
        cache.put("dev", Credentials("tok", "p", expires_in=100))

        # 100s minus the 30s refresh margin
        clock.now += 69
        assert cache.get("dev") is not None
        clock.now += 1
        assert cache.get("dev") is None

    def test_short_lived_token_not_stored(self, clock):
        cache = TokenCache(ttl_seconds=3600, clock=clock)
        cache.put("dev", Credentials("tok", "p", expires_in=20))

        assert cache.get("dev") is None

    def test_unknown_provider_expiry_uses_ttl(self, clock):
        cache = TokenCache(ttl_seconds=60, clock=clock)
        cache.put("dev", Credentials("tok", "p"))

        clock.now += 59
        assert cache.get("dev") is not None

    def test_invalidate(self, clock, credentials):
        cache = TokenCache(ttl_seconds=300, clock=clock)
        cache.put("dev", credentials)
        cache.invalidate("dev")
        cache.invalidate("never-stored")

        assert cache.get("dev") is None

    def test_clear_returns_count(self, clock, credentials):
        cache = TokenCache(ttl_seconds=300, clock=clock)
        cache.put("a", credentials)
        cache.put("b", credentials)

        assert cache.clear() == 2
        assert cache.get("a") is None
