"""Block cache backend and buffer allocator collaborators."""

from __future__ import annotations

import logging
from functools import cache
from pathlib import Path
from typing import Protocol, TypedDict, runtime_checkable

import msgspec
from diskcache import Cache, FanoutCache

from block_cache.env import env_int, env_value
from block_cache.serde import StructBaseStrict

logger = logging.getLogger(__name__)

DEFAULT_SIZE_LIMIT_BYTES = 1024 * 1024 * 1024


@runtime_checkable
class BufferAllocator(Protocol):
    """Allocator used when materializing blocks read under a cache policy."""

    def allocate(self, size: int) -> bytearray:
        """Return a zeroed buffer of ``size`` bytes."""
        ...


class HeapAllocator:
    """Allocator that hands out plain heap buffers."""

    def allocate(self, size: int) -> bytearray:
        """Return a zeroed heap buffer.

        Returns
        -------
        bytearray
            Newly allocated buffer.

        Raises
        ------
        ValueError
            Raised when ``size`` is negative.
        """
        if size < 0:
            msg = f"Buffer size must be non-negative, got {size}."
            raise ValueError(msg)
        return bytearray(size)

    def __repr__(self) -> str:
        return "HeapAllocator()"


HEAP_ALLOCATOR: BufferAllocator = HeapAllocator()


@runtime_checkable
class BlockCacheBackend(Protocol):
    """Opaque cache handle; the policy layer only cares whether one exists."""

    def get(self, key: str, default: object = None) -> object:
        """Return the cached value for ``key``."""
        ...

    def set(self, key: str, value: object) -> bool:
        """Store ``value`` under ``key``."""
        ...


def _default_cache_root() -> Path:
    root = env_value("BLOCKCACHE_DISKCACHE_DIR")
    if root:
        return Path(root).expanduser()
    return Path.home() / ".cache" / "block_cache"


class BlockCacheSettings(StructBaseStrict, frozen=True):
    """Settings for the diskcache instance backing the block cache.

    A ``size_limit_bytes`` of zero disables the block cache entirely.
    """

    root: Path = msgspec.field(default_factory=_default_cache_root)
    size_limit_bytes: int = DEFAULT_SIZE_LIMIT_BYTES
    eviction_policy: str = "least-recently-used"
    cull_limit: int = 10
    shards: int | None = None
    timeout_seconds: float = 60.0
    statistics: bool = False

    @property
    def enabled(self) -> bool:
        """Return whether these settings describe a usable cache.

        Returns
        -------
        bool
            True when the size limit is positive.
        """
        return self.size_limit_bytes > 0


class _CacheKwargs(TypedDict):
    size_limit: int
    eviction_policy: str
    cull_limit: int
    statistics: bool
    timeout: int


@cache
def default_block_cache_settings() -> BlockCacheSettings:
    """Return block cache settings resolved from the environment.

    Returns
    -------
    BlockCacheSettings
        Settings with ``BLOCKCACHE_SIZE_LIMIT_BYTES`` and
        ``BLOCKCACHE_SHARDS`` applied.
    """
    shards = env_int("BLOCKCACHE_SHARDS", default=0)
    return BlockCacheSettings(
        root=_default_cache_root(),
        size_limit_bytes=env_int("BLOCKCACHE_SIZE_LIMIT_BYTES", default=DEFAULT_SIZE_LIMIT_BYTES),
        shards=shards if shards > 1 else None,
    )


_BACKEND_POOL: dict[BlockCacheSettings, Cache | FanoutCache] = {}


def build_block_cache(settings: BlockCacheSettings) -> Cache | FanoutCache | None:
    """Return the pooled diskcache instance for ``settings``.

    Returns
    -------
    Cache | FanoutCache | None
        Cache instance, or None when the settings disable the block cache.
    """
    if not settings.enabled:
        logger.info("Block cache disabled: size_limit_bytes=%d", settings.size_limit_bytes)
        return None
    backend = _BACKEND_POOL.get(settings)
    if backend is not None:
        return backend
    kwargs: _CacheKwargs = {
        "size_limit": settings.size_limit_bytes,
        "eviction_policy": settings.eviction_policy,
        "cull_limit": settings.cull_limit,
        "statistics": settings.statistics,
        "timeout": int(settings.timeout_seconds),
    }
    if settings.shards is not None and settings.shards > 1:
        backend = FanoutCache(str(settings.root), shards=settings.shards, **kwargs)
    else:
        backend = Cache(str(settings.root), **kwargs)
    logger.info(
        "Created block cache at %s with size_limit_bytes=%d shards=%s",
        settings.root,
        settings.size_limit_bytes,
        settings.shards,
    )
    _BACKEND_POOL[settings] = backend
    return backend


def close_block_caches() -> int:
    """Close and forget every pooled block cache.

    Returns
    -------
    int
        Count of caches closed.
    """
    backends = list(_BACKEND_POOL.values())
    _BACKEND_POOL.clear()
    for backend in backends:
        backend.close()
    return len(backends)


__all__ = [
    "DEFAULT_SIZE_LIMIT_BYTES",
    "HEAP_ALLOCATOR",
    "BlockCacheBackend",
    "BlockCacheSettings",
    "BufferAllocator",
    "HeapAllocator",
    "build_block_cache",
    "close_block_caches",
    "default_block_cache_settings",
]
