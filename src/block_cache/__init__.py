"""Cache admission policy for block-oriented storage files."""

from block_cache.backend import (
    HEAP_ALLOCATOR,
    BlockCacheBackend,
    BlockCacheSettings,
    BufferAllocator,
    HeapAllocator,
    build_block_cache,
    close_block_caches,
    default_block_cache_settings,
)
from block_cache.categories import (
    BlockCategory,
    BlockType,
    block_type_from_magic,
    category_of,
)
from block_cache.config_loader import load_dataset_overrides, load_global_settings
from block_cache.policy import (
    DISABLED_POLICY,
    ResolvedPolicy,
    policy_for_backend,
    resolve_cache_policy,
)
from block_cache.settings import DatasetCacheOverride, DatasetOverride, GlobalSettings

__all__ = [
    "DISABLED_POLICY",
    "HEAP_ALLOCATOR",
    "BlockCacheBackend",
    "BlockCacheSettings",
    "BlockCategory",
    "BlockType",
    "BufferAllocator",
    "DatasetCacheOverride",
    "DatasetOverride",
    "GlobalSettings",
    "HeapAllocator",
    "ResolvedPolicy",
    "block_type_from_magic",
    "build_block_cache",
    "category_of",
    "close_block_caches",
    "default_block_cache_settings",
    "load_dataset_overrides",
    "load_global_settings",
    "policy_for_backend",
    "resolve_cache_policy",
]
