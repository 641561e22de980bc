from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

import redis


class StorageError(RuntimeError):
    """Raised by a store when the backend cannot be read or written."""


class KeyValueStore(Protocol):
    """Durable named values. Implementations raise StorageError on backend failure."""

    def load(self, key: str) -> str | None: ...

    def save(self, key: str, value: str) -> None: ...

    def save_many(self, values: Mapping[str, str]) -> None:
        """Write every value or none of them."""
        ...


class RedisKeyValueStore:
    def __init__(self, r: redis.Redis) -> None:
        self._r = r

    def load(self, key: str) -> str | None:
        try:
            raw = self._r.get(key)
        except redis.RedisError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e
        if raw is None:
            return None
        # Clients created without decode_responses hand back bytes.
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return str(raw)

    def save(self, key: str, value: str) -> None:
        try:
            self._r.set(key, value)
        except redis.RedisError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def save_many(self, values: Mapping[str, str]) -> None:
        # MULTI/EXEC: commands are buffered client-side and applied together.
        try:
            pipe = self._r.pipeline(transaction=True)
            for key, value in values.items():
                pipe.set(key, value)
            pipe.execute()
        except redis.RedisError as e:
            raise StorageError(f"Failed to write {len(values)} keys: {e}") from e
