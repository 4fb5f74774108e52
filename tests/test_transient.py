"""Tests for the key/value stores and the system helpers."""

import random

import pytest
import redis

from celeiro.config import Settings
from celeiro.domain.errors import UpstreamError
from celeiro.system import IntGenerator, SessionTokenGenerator, StringGenerator
from celeiro.transient import MemoryStore, create_store
from celeiro.transient.redis_store import RedisStore


def test_memory_get_set(store):
    assert store.get("k") is None
    store.set("k", "v")
    assert store.get("k") == "v"
    assert store.exists("k")
    assert store.ttl("k") is None


def test_memory_ttl_expiry(store, clock):
    store.set_with_ttl("k", "v", 60)
    assert store.ttl("k") == 60

    clock.advance(seconds=59)
    assert store.get("k") == "v"
    assert store.ttl("k") == 1

    clock.advance(seconds=1)
    assert store.get("k") is None
    assert not store.exists("k")


def test_memory_writes_sweep_expired_entries(store, clock):
    """Entries nobody reads again are still dropped once they expire."""
    for i in range(1000):
        store.set_with_ttl(f"session:{i}", "v", 60)
    store.set("permanent", "v")

    clock.advance(days=1)
    store.set_with_ttl("fresh", "v", 60)

    assert set(store._data) == {"permanent", "fresh"}


def test_memory_sweep_waits_for_interval(store, clock):
    store.set_with_ttl("short", "v", 1)
    clock.advance(seconds=2)
    store.set("other", "v")
    assert "short" in store._data

    assert store.cleanup_expired() == 1
    assert "short" not in store._data


def test_memory_delete_missing_key(store):
    store.delete("nothing")
    store.set("k", "v")
    store.delete("k")
    assert store.get("k") is None


def test_memory_closed_store_fails(store):
    store.set("k", "v")
    store.close()
    with pytest.raises(UpstreamError):
        store.get("k")


class FakeRedis:
    """Minimal stand-in for a redis client."""

    def __init__(self, fail=False):
        self.data = {}
        self.expiry = {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("connection refused")

    def get(self, key):
        self._check()
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        if ex is not None:
            self.expiry[key] = ex

    def delete(self, key):
        self._check()
        self.data.pop(key, None)

    def exists(self, key):
        self._check()
        return int(key in self.data)

    def ttl(self, key):
        self._check()
        if key not in self.data:
            return -2
        return self.expiry.get(key, -1)

    def ping(self):
        self._check()
        return True

    def close(self):
        self.closed = True


def test_redis_store_operations():
    client = FakeRedis()
    store = RedisStore(client)

    store.set_with_ttl("session:x", "{}", 30)
    store.set("plain", "1")

    assert store.get("session:x") == "{}"
    assert store.ttl("session:x") == 30
    assert store.ttl("plain") is None
    assert store.ttl("missing") is None
    assert store.exists("plain")
    store.delete("plain")
    assert not store.exists("plain")
    store.close()
    assert client.closed


def test_redis_errors_become_upstream_errors():
    store = RedisStore(FakeRedis(fail=True))
    with pytest.raises(UpstreamError):
        store.get("k")
    with pytest.raises(UpstreamError):
        store.set_with_ttl("k", "v", 10)
    with pytest.raises(UpstreamError):
        store.ping()


def test_factory_selects_memory_without_redis_host():
    store = create_store(Settings(REDIS_HOST=""))
    assert isinstance(store, MemoryStore)


def test_factory_selects_redis_with_host():
    store = create_store(Settings(REDIS_HOST="localhost", REDIS_PORT=6390))
    assert isinstance(store, RedisStore)
    assert store.client.connection_pool.connection_kwargs["port"] == 6390


def test_int_generator_is_bounded():
    ints = IntGenerator(random.Random(42))
    values = [ints.generate(9999) for _ in range(200)]
    assert all(0 <= v <= 9999 for v in values)


def test_string_generator_length():
    value = StringGenerator().generate(16)
    assert len(value) == 16
    assert value.isalnum()


def test_session_tokens_are_urlsafe():
    token = SessionTokenGenerator().generate(128)
    assert len(token) == 172
    assert "+" not in token and "/" not in token
