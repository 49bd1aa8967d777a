"""Disabled policy, copy, and test builder behaviour."""

from __future__ import annotations

import msgspec
import pytest

from block_cache.backend import HEAP_ALLOCATOR
from block_cache.categories import BlockCategory, BlockType
from block_cache.policy import DISABLED_POLICY, policy_for_backend, resolve_cache_policy
from block_cache.settings import DatasetCacheOverride, GlobalSettings
from block_cache.testing import policy_for_testing


def test_disabled_policy_flags() -> None:
    """The disabled policy turns every flag off and has no backend."""
    assert not DISABLED_POLICY.should_cache_data_on_read()
    assert not DISABLED_POLICY.should_cache_data_on_write()
    assert not DISABLED_POLICY.should_cache_indexes_on_write()
    assert not DISABLED_POLICY.should_cache_blooms_on_write()
    assert not DISABLED_POLICY.should_evict_on_close()
    assert not DISABLED_POLICY.should_prefetch_on_open()
    assert not DISABLED_POLICY.should_cache_data_compressed()
    assert not DISABLED_POLICY.should_drop_behind_compaction()
    assert not DISABLED_POLICY.is_in_memory()
    assert DISABLED_POLICY.cache_backend() is None
    assert DISABLED_POLICY.allocator() is HEAP_ALLOCATOR


def test_disabled_policy_still_admits_structural_blocks() -> None:
    """Decision rules are unchanged; only data caching is off."""
    assert DISABLED_POLICY.should_cache_block_on_read(BlockCategory.INDEX)
    assert not DISABLED_POLICY.should_cache_block_on_read(BlockCategory.DATA)
    assert not DISABLED_POLICY.should_read_block_from_cache(BlockType.DATA)


def test_disabled_policy_is_frozen() -> None:
    """The shared sentinel cannot be mutated in place."""
    with pytest.raises(AttributeError):
        DISABLED_POLICY.cache_data_on_write = True  # type: ignore[misc]


def test_policy_for_backend_without_backend_is_disabled() -> None:
    """Opening a file with no backend yields the shared sentinel."""
    settings = GlobalSettings(prefetch_on_open=True)
    assert policy_for_backend(settings, None) is DISABLED_POLICY
    assert policy_for_backend(settings, None, DatasetCacheOverride()) is DISABLED_POLICY


def test_policy_for_backend_resolves_with_backend(backend: object) -> None:
    """A configured backend yields a normally resolved policy."""
    policy = policy_for_backend(GlobalSettings(prefetch_on_open=True), backend)
    assert policy is not DISABLED_POLICY
    assert policy.should_prefetch_on_open()
    assert policy.cache_backend() is backend


def test_copy_snapshots_flags_and_shares_collaborators(backend: object) -> None:
    """A copied policy is independent but shares backend and allocator."""
    source = resolve_cache_policy(GlobalSettings(), backend=backend)
    copied = source.copy()
    assert copied is not source
    assert copied == source
    assert copied.cache_backend() is source.cache_backend()
    assert copied.allocator() is source.allocator()


def test_testing_builder_leaves_source_untouched(backend: object) -> None:
    """Adjusting a copy's test flags never changes the source policy."""
    source = resolve_cache_policy(GlobalSettings(), backend=backend)
    adjusted = policy_for_testing(source.copy(), cache_data_on_write=True, evict_on_close=True)
    assert adjusted.should_cache_data_on_write()
    assert adjusted.should_evict_on_close()
    assert not source.should_cache_data_on_write()
    assert not source.should_evict_on_close()
    assert adjusted.cache_backend() is backend
    assert adjusted.allocator() is source.allocator()


def test_testing_builder_only_touches_requested_flags() -> None:
    """Unspecified flags keep their resolved values."""
    source = resolve_cache_policy(GlobalSettings(evict_on_close=True))
    adjusted = policy_for_testing(source, cache_data_on_write=True)
    assert adjusted.should_evict_on_close()
    assert msgspec.structs.replace(adjusted, cache_data_on_write=False) == source


def test_policy_does_not_touch_backend(backend: object) -> None:
    """Decisions never read from, write to, or close the backend."""
    policy = resolve_cache_policy(GlobalSettings(), backend=backend)
    for block_type in BlockType:
        policy.should_read_block_from_cache(block_type)
        policy.should_lock_on_cache_miss(block_type)
        policy.should_cache_block_on_read(block_type.category)
    assert backend.entries == {}  # type: ignore[attr-defined]
    assert backend.closed is False  # type: ignore[attr-defined]
