"""Shared fixtures for block cache policy tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from block_cache.backend import close_block_caches, default_block_cache_settings


class RecordingBackend:
    """In-memory stand-in for a cache backend that records mutation calls."""

    def __init__(self) -> None:
        self.entries: dict[str, object] = {}
        self.closed = False

    def get(self, key: str, default: object = None) -> object:
        return self.entries.get(key, default)

    def set(self, key: str, value: object) -> bool:
        self.entries[key] = value
        return True

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def backend() -> RecordingBackend:
    """Return a fresh recording backend."""
    return RecordingBackend()


@pytest.fixture(autouse=True)
def _isolate_block_caches(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in (
        "BLOCKCACHE_DISKCACHE_DIR",
        "BLOCKCACHE_SIZE_LIMIT_BYTES",
        "BLOCKCACHE_SHARDS",
    ):
        monkeypatch.delenv(name, raising=False)
    default_block_cache_settings.cache_clear()
    yield
    close_block_caches()
    default_block_cache_settings.cache_clear()
