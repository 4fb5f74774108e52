"""Redis-backed key/value store."""

from typing import Optional

import redis

from celeiro.domain.errors import UpstreamError
from celeiro.transient.base import KeyValueStore


class RedisStore(KeyValueStore):
    """KeyValueStore over a redis client. Redis failures surface as UpstreamError."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_settings(cls, host: str, port: int, password: str = "", db: int = 0) -> "RedisStore":
        client = redis.Redis(
            host=host,
            port=port,
            password=password or None,
            db=db,
            decode_responses=True,
            health_check_interval=5,
            retry_on_timeout=True,
        )
        return cls(client)

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            raise UpstreamError(f"redis get failed: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except redis.RedisError as e:
            raise UpstreamError(f"redis set failed: {e}") from e

    def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self.client.set(key, value, ex=ttl_seconds)
        except redis.RedisError as e:
            raise UpstreamError(f"redis set failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            raise UpstreamError(f"redis delete failed: {e}") from e

    def exists(self, key: str) -> bool:
        try:
            return bool(self.client.exists(key))
        except redis.RedisError as e:
            raise UpstreamError(f"redis exists failed: {e}") from e

    def ttl(self, key: str) -> Optional[int]:
        try:
            remaining = self.client.ttl(key)
        except redis.RedisError as e:
            raise UpstreamError(f"redis ttl failed: {e}") from e
        # -2 missing key, -1 no expiry
        if remaining is None or remaining < 0:
            return None
        return int(remaining)

    def ping(self) -> None:
        try:
            self.client.ping()
        except redis.RedisError as e:
            raise UpstreamError(f"redis unreachable: {e}") from e

    def close(self) -> None:
        self.client.close()
