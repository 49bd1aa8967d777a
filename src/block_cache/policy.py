"""Resolved cache admission policy for a single stored file.

A :class:`ResolvedPolicy` is built once per file open by merging the global
settings with an optional per-dataset override. It is frozen, so it can be
shared by every thread reading or writing that file without locking. Each
decision method is a pure function of the resolved flags and the block's
category or type.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import msgspec

from block_cache.backend import HEAP_ALLOCATOR, BlockCacheBackend, BufferAllocator
from block_cache.categories import BlockCategory, BlockType, category_of
from block_cache.serde import StructBaseStrict
from block_cache.settings import DatasetOverride, GlobalSettings

logger = logging.getLogger(__name__)


class ResolvedPolicy(StructBaseStrict, frozen=True):
    """Cache admission flags for one file, plus its shared collaborators.

    The cache backend and allocator are owned by the storage engine; the
    policy only holds references to them and never closes or mutates them.
    """

    # Whether DATA blocks are cached on read. INDEX and BLOOM blocks are
    # cached regardless whenever a backend exists.
    cache_data_on_read: bool
    in_memory: bool
    cache_data_on_write: bool
    cache_indexes_on_write: bool
    cache_blooms_on_write: bool
    evict_on_close: bool
    cache_data_compressed: bool
    prefetch_on_open: bool
    drop_behind_compaction: bool
    block_cache: BlockCacheBackend | None
    byte_allocator: BufferAllocator

    def should_cache_data_on_read(self) -> bool:
        """Return whether DATA blocks are cached on read.

        Returns
        -------
        bool
            Resolved cache-data-on-read flag.
        """
        return self.cache_data_on_read

    def should_cache_block_on_read(self, category: BlockCategory) -> bool:
        """Return whether a block of ``category`` is admitted on read.

        Index and bloom blocks are always admitted. Prefetch admits every
        category except file metadata and unclassified blocks.

        Returns
        -------
        bool
            True when the block should be cached after it is read.
        """
        return (
            self.cache_data_on_read
            or category.is_structural
            or (self.prefetch_on_open and category.is_prefetchable)
        )

    def should_cache_data_compressed(self) -> bool:
        """Return whether DATA blocks are kept compressed in the cache.

        Returns
        -------
        bool
            True only when data caching on read is itself active.
        """
        return self.cache_data_on_read and self.cache_data_compressed

    def should_cache_compressed(self, category: BlockCategory) -> bool:
        """Return whether a block of ``category`` is cached in compressed form.

        Returns
        -------
        bool
            Compressed data caching for DATA; False for every other category.
        """
        if category is BlockCategory.DATA:
            return self.should_cache_data_compressed()
        return False

    def should_read_block_from_cache(self, block_type: BlockType | None) -> bool:
        """Return whether the read path should probe the cache for a block.

        Returns
        -------
        bool
            False only when the policy guarantees the block cannot be cached.
        """
        if self.cache_data_on_read or self.prefetch_on_open or self.cache_data_on_write:
            return True
        if block_type is None:
            return True
        return block_type.category.is_structural

    def should_lock_on_cache_miss(self, block_type: BlockType | None) -> bool:
        """Return whether a cache miss should take the per-block load lock.

        The lock only pays off when the loaded block is inserted afterwards.

        Returns
        -------
        bool
            True when the type is absent or the block will be cached on read.
        """
        if block_type is None:
            return True
        return self.should_cache_block_on_read(category_of(block_type))

    def should_cache_indexes_on_write(self) -> bool:
        """Return whether index blocks are cached when a file is written."""
        return self.cache_indexes_on_write

    def should_cache_blooms_on_write(self) -> bool:
        """Return whether bloom blocks are cached when a file is written."""
        return self.cache_blooms_on_write

    def should_cache_data_on_write(self) -> bool:
        """Return whether data blocks are cached when a file is written.

        Returns
        -------
        bool
            Resolved flag.
        """
        return self.cache_data_on_write

    def should_evict_on_close(self) -> bool:
        """Return whether a file's blocks are evicted when its reader closes.

        Returns
        -------
        bool
            Resolved flag.
        """
        return self.evict_on_close

    def should_prefetch_on_open(self) -> bool:
        """Return whether blocks are prefetched into cache on open.

        Returns
        -------
        bool
            Resolved flag.
        """
        return self.prefetch_on_open

    def should_drop_behind_compaction(self) -> bool:
        """Return whether compaction reads hint the OS to drop pages behind.

        Returns
        -------
        bool
            Resolved flag.
        """
        return self.drop_behind_compaction

    def is_in_memory(self) -> bool:
        """Return whether cached blocks are flagged as in-memory."""
        return self.in_memory

    def cache_backend(self) -> BlockCacheBackend | None:
        """Return the shared cache backend.

        Returns
        -------
        BlockCacheBackend | None
            Backend reference, or None when caching is fully disabled.
        """
        return self.block_cache

    def allocator(self) -> BufferAllocator:
        """Return the shared buffer allocator.

        Returns
        -------
        BufferAllocator
            Allocator used when materializing blocks.
        """
        return self.byte_allocator

    def copy(self) -> ResolvedPolicy:
        """Return an independent policy sharing this one's collaborators.

        Returns
        -------
        ResolvedPolicy
            New policy with the same flags, backend, and allocator.
        """
        return msgspec.structs.replace(self)

    def payload(self) -> Mapping[str, object]:
        """Return a JSON-compatible diagnostics payload.

        Returns
        -------
        Mapping[str, object]
            Resolved flags plus whether a backend is present.
        """
        return {
            "cache_data_on_read": self.cache_data_on_read,
            "in_memory": self.in_memory,
            "cache_data_on_write": self.cache_data_on_write,
            "cache_indexes_on_write": self.cache_indexes_on_write,
            "cache_blooms_on_write": self.cache_blooms_on_write,
            "evict_on_close": self.evict_on_close,
            "cache_data_compressed": self.cache_data_compressed,
            "prefetch_on_open": self.prefetch_on_open,
            "drop_behind_compaction": self.drop_behind_compaction,
            "cache_backend": self.block_cache is not None,
        }

    def summary(self) -> str:
        """Return a one-line human-readable summary of the decisions.

        Returns
        -------
        str
            Summary text.
        """
        return (
            f"cacheDataOnRead={self.should_cache_data_on_read()}, "
            f"cacheDataOnWrite={self.should_cache_data_on_write()}, "
            f"cacheIndexesOnWrite={self.should_cache_indexes_on_write()}, "
            f"cacheBloomsOnWrite={self.should_cache_blooms_on_write()}, "
            f"cacheEvictOnClose={self.should_evict_on_close()}, "
            f"cacheDataCompressed={self.should_cache_data_compressed()}, "
            f"prefetchOnOpen={self.should_prefetch_on_open()}"
        )

    def __str__(self) -> str:
        return self.summary()


def resolve_cache_policy(
    settings: GlobalSettings,
    override: DatasetOverride | None = None,
    *,
    backend: BlockCacheBackend | None = None,
    allocator: BufferAllocator = HEAP_ALLOCATOR,
) -> ResolvedPolicy:
    """Merge global settings and an optional dataset override into a policy.

    Cache-data-on-read requires both the global flag and the dataset's block
    cache switch. The write, evict and prefetch flags are enabled when either
    side enables them. Compression and drop-behind have no dataset override.

    Parameters
    ----------
    settings
        Global settings snapshot.
    override
        Optional per-dataset override.
    backend
        Shared cache backend; None disables caching for the file.
    allocator
        Shared buffer allocator.

    Returns
    -------
    ResolvedPolicy
        Immutable resolved policy.
    """
    policy = ResolvedPolicy(
        cache_data_on_read=settings.cache_data_on_read
        and (override.block_cache_enabled if override is not None else True),
        in_memory=override.in_memory if override is not None else False,
        cache_data_on_write=settings.cache_data_on_write
        or (override is not None and override.cache_data_on_write),
        cache_indexes_on_write=settings.cache_indexes_on_write
        or (override is not None and override.cache_indexes_on_write),
        cache_blooms_on_write=settings.cache_blooms_on_write
        or (override is not None and override.cache_blooms_on_write),
        evict_on_close=settings.evict_on_close
        or (override is not None and override.evict_blocks_on_close),
        cache_data_compressed=settings.cache_data_compressed,
        prefetch_on_open=settings.prefetch_on_open
        or (override is not None and override.prefetch_blocks_on_open),
        drop_behind_compaction=settings.drop_behind_compaction,
        block_cache=backend,
        byte_allocator=allocator,
    )
    logger.info(
        "Created cache policy: %s%s with block cache=%r",
        policy.summary(),
        "" if override is None else f" for dataset {override.name}",
        backend,
    )
    return policy


DISABLED_POLICY = ResolvedPolicy(
    cache_data_on_read=False,
    in_memory=False,
    cache_data_on_write=False,
    cache_indexes_on_write=False,
    cache_blooms_on_write=False,
    evict_on_close=False,
    cache_data_compressed=False,
    prefetch_on_open=False,
    drop_behind_compaction=False,
    block_cache=None,
    byte_allocator=HEAP_ALLOCATOR,
)


def policy_for_backend(
    settings: GlobalSettings,
    backend: BlockCacheBackend | None,
    override: DatasetOverride | None = None,
    *,
    allocator: BufferAllocator = HEAP_ALLOCATOR,
) -> ResolvedPolicy:
    """Return the policy for a file, or the disabled policy without a backend.

    Returns
    -------
    ResolvedPolicy
        ``DISABLED_POLICY`` when ``backend`` is None, else a resolved policy.
    """
    if backend is None:
        return DISABLED_POLICY
    return resolve_cache_policy(settings, override, backend=backend, allocator=allocator)


__all__ = [
    "DISABLED_POLICY",
    "ResolvedPolicy",
    "policy_for_backend",
    "resolve_cache_policy",
]
