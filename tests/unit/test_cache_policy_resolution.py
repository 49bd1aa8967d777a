"""Policy resolution precedence tests."""

from __future__ import annotations

import logging

import pytest

from block_cache.backend import HEAP_ALLOCATOR, HeapAllocator
from block_cache.policy import resolve_cache_policy
from block_cache.settings import DatasetCacheOverride, DatasetOverride, GlobalSettings

# Global field name -> dataset override field name.
_OR_COMBINED = {
    "cache_data_on_write": "cache_data_on_write",
    "cache_indexes_on_write": "cache_indexes_on_write",
    "cache_blooms_on_write": "cache_blooms_on_write",
    "evict_on_close": "evict_blocks_on_close",
    "prefetch_on_open": "prefetch_blocks_on_open",
}


@pytest.mark.parametrize("field", sorted(_OR_COMBINED))
@pytest.mark.parametrize(
    ("global_flag", "override_flag", "expected"),
    [
        (False, True, True),
        (True, False, True),
        (True, True, True),
        (False, False, False),
        (False, None, False),
        (True, None, True),
    ],
)
def test_or_combined_flags(
    field: str,
    *,
    global_flag: bool,
    override_flag: bool | None,
    expected: bool,
) -> None:
    """Either the global setting or the dataset override can enable a flag."""
    settings = GlobalSettings(**{field: global_flag})
    override = (
        None
        if override_flag is None
        else DatasetCacheOverride(name="orders", **{_OR_COMBINED[field]: override_flag})
    )
    policy = resolve_cache_policy(settings, override)
    assert getattr(policy, field) is expected


@pytest.mark.parametrize(
    ("global_flag", "block_cache_enabled", "expected"),
    [
        (True, True, True),
        (True, False, False),
        (False, True, False),
        (False, False, False),
    ],
)
def test_cache_data_on_read_requires_both_sides(
    *,
    global_flag: bool,
    block_cache_enabled: bool,
    expected: bool,
) -> None:
    """The dataset's block cache switch can only turn data read caching off."""
    policy = resolve_cache_policy(
        GlobalSettings(cache_data_on_read=global_flag),
        DatasetCacheOverride(block_cache_enabled=block_cache_enabled),
    )
    assert policy.should_cache_data_on_read() is expected


def test_cache_data_on_read_without_override_uses_global() -> None:
    """Without an override the global flag decides."""
    assert resolve_cache_policy(GlobalSettings()).should_cache_data_on_read()
    assert not resolve_cache_policy(
        GlobalSettings(cache_data_on_read=False)
    ).should_cache_data_on_read()


def test_in_memory_comes_from_override_only() -> None:
    """In-memory is false without an override and copied from one."""
    assert not resolve_cache_policy(GlobalSettings()).is_in_memory()
    override = DatasetCacheOverride(in_memory=True)
    assert resolve_cache_policy(GlobalSettings(), override).is_in_memory()


def test_global_only_flags_ignore_override() -> None:
    """Compression and drop-behind are taken from the global settings."""
    settings = GlobalSettings(cache_data_compressed=True, drop_behind_compaction=False)
    policy = resolve_cache_policy(settings, DatasetCacheOverride(name="orders"))
    assert policy.cache_data_compressed is True
    assert policy.should_drop_behind_compaction() is False


def test_defaults_match_configuration_table() -> None:
    """Default settings resolve to the documented defaults."""
    policy = resolve_cache_policy(GlobalSettings())
    assert policy.should_cache_data_on_read()
    assert not policy.should_cache_data_on_write()
    assert not policy.should_cache_indexes_on_write()
    assert not policy.should_cache_blooms_on_write()
    assert not policy.should_cache_data_compressed()
    assert not policy.should_evict_on_close()
    assert not policy.should_prefetch_on_open()
    assert policy.should_drop_behind_compaction()


def test_collaborators_are_shared_not_copied(backend: object) -> None:
    """The policy holds the caller's backend and allocator references."""
    allocator = HeapAllocator()
    policy = resolve_cache_policy(GlobalSettings(), backend=backend, allocator=allocator)
    assert policy.cache_backend() is backend
    assert policy.allocator() is allocator
    assert resolve_cache_policy(GlobalSettings()).allocator() is HEAP_ALLOCATOR


def test_override_protocol_accepts_foreign_descriptors() -> None:
    """Any object exposing the override attributes can drive resolution."""

    class _Descriptor:
        name = "events"
        block_cache_enabled = False
        in_memory = True
        cache_data_on_write = False
        cache_indexes_on_write = True
        cache_blooms_on_write = False
        evict_blocks_on_close = False
        prefetch_blocks_on_open = True

    descriptor = _Descriptor()
    assert isinstance(descriptor, DatasetOverride)
    policy = resolve_cache_policy(GlobalSettings(), descriptor)
    assert not policy.should_cache_data_on_read()
    assert policy.is_in_memory()
    assert policy.should_cache_indexes_on_write()
    assert policy.should_prefetch_on_open()


def test_resolution_logs_summary(caplog: pytest.LogCaptureFixture) -> None:
    """Resolution emits one diagnostic record naming the dataset."""
    with caplog.at_level(logging.INFO, logger="block_cache.policy"):
        resolve_cache_policy(GlobalSettings(), DatasetCacheOverride(name="orders"))
    messages = [record.getMessage() for record in caplog.records]
    assert len(messages) == 1
    assert "cacheDataOnRead=True" in messages[0]
    assert "for dataset orders" in messages[0]
