"""Global and per-dataset cache settings snapshots."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from block_cache.env import env_bool, parse_flag
from block_cache.serde import StructBaseStrict

logger = logging.getLogger(__name__)

CACHE_DATA_ON_READ_KEY = "cache-data-on-read"
CACHE_BLOCKS_ON_WRITE_KEY = "cache-on-write"
CACHE_INDEX_BLOCKS_ON_WRITE_KEY = "cache-index-on-write"
CACHE_BLOOM_BLOCKS_ON_WRITE_KEY = "cache-bloom-on-write"
CACHE_DATA_BLOCKS_COMPRESSED_KEY = "cache-data-compressed"
EVICT_BLOCKS_ON_CLOSE_KEY = "evict-on-close"
PREFETCH_BLOCKS_ON_OPEN_KEY = "prefetch-on-open"
DROP_BEHIND_CACHE_COMPACTION_KEY = "drop-behind-on-compaction"

DEFAULT_CACHE_DATA_ON_READ = True
DEFAULT_CACHE_DATA_ON_WRITE = False
DEFAULT_IN_MEMORY = False
DEFAULT_CACHE_INDEXES_ON_WRITE = False
DEFAULT_CACHE_BLOOMS_ON_WRITE = False
DEFAULT_EVICT_ON_CLOSE = False
DEFAULT_CACHE_DATA_COMPRESSED = False
DEFAULT_PREFETCH_ON_OPEN = False
DEFAULT_DROP_BEHIND_COMPACTION = True

DEFAULT_ENV_PREFIX = "BLOCKCACHE_"

# Field name -> configuration key.
SETTINGS_KEYS: Mapping[str, str] = {
    "cache_data_on_read": CACHE_DATA_ON_READ_KEY,
    "cache_data_on_write": CACHE_BLOCKS_ON_WRITE_KEY,
    "cache_indexes_on_write": CACHE_INDEX_BLOCKS_ON_WRITE_KEY,
    "cache_blooms_on_write": CACHE_BLOOM_BLOCKS_ON_WRITE_KEY,
    "cache_data_compressed": CACHE_DATA_BLOCKS_COMPRESSED_KEY,
    "evict_on_close": EVICT_BLOCKS_ON_CLOSE_KEY,
    "prefetch_on_open": PREFETCH_BLOCKS_ON_OPEN_KEY,
    "drop_behind_compaction": DROP_BEHIND_CACHE_COMPACTION_KEY,
}


class GlobalSettings(StructBaseStrict, frozen=True, rename=dict(SETTINGS_KEYS)):
    """System-wide cache toggles read from the configuration source."""

    cache_data_on_read: bool = DEFAULT_CACHE_DATA_ON_READ
    cache_data_on_write: bool = DEFAULT_CACHE_DATA_ON_WRITE
    cache_indexes_on_write: bool = DEFAULT_CACHE_INDEXES_ON_WRITE
    cache_blooms_on_write: bool = DEFAULT_CACHE_BLOOMS_ON_WRITE
    cache_data_compressed: bool = DEFAULT_CACHE_DATA_COMPRESSED
    evict_on_close: bool = DEFAULT_EVICT_ON_CLOSE
    prefetch_on_open: bool = DEFAULT_PREFETCH_ON_OPEN
    drop_behind_compaction: bool = DEFAULT_DROP_BEHIND_COMPACTION

    @classmethod
    def from_mapping(cls, conf: Mapping[str, object]) -> GlobalSettings:
        """Build settings from a flat configuration source.

        Values may be booleans or boolean strings. Keys this layer does not
        own are ignored; unparseable values fall back to their default.

        Parameters
        ----------
        conf
            Configuration source keyed by the cache configuration keys.

        Returns
        -------
        GlobalSettings
            Settings snapshot.
        """
        values: dict[str, bool] = {}
        for field_name, key in SETTINGS_KEYS.items():
            if key not in conf:
                continue
            default = getattr(_DEFAULT_SETTINGS, field_name)
            values[field_name] = _coerce_flag(key, conf[key], default=default)
        return cls(**values)

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> GlobalSettings:
        """Build settings from environment variables.

        ``cache-on-write`` is read from ``BLOCKCACHE_CACHE_ON_WRITE`` and so on.

        Returns
        -------
        GlobalSettings
            Settings snapshot.
        """
        values = {
            field_name: env_bool(
                env_name(key, prefix=prefix),
                default=getattr(_DEFAULT_SETTINGS, field_name),
            )
            for field_name, key in SETTINGS_KEYS.items()
        }
        return cls(**values)


_DEFAULT_SETTINGS = GlobalSettings()


def env_name(key: str, *, prefix: str = DEFAULT_ENV_PREFIX) -> str:
    """Return the environment variable name for a configuration key.

    Returns
    -------
    str
        Upper snake-case variable name.
    """
    return f"{prefix}{key.replace('-', '_').upper()}"


def _coerce_flag(key: str, value: object, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        parsed = parse_flag(value)
        if parsed is not None:
            return parsed
    logger.warning("Invalid boolean for %s: %r; using %s", key, value, default)
    return default


@runtime_checkable
class DatasetOverride(Protocol):
    """Per-dataset cache settings that may override the global ones."""

    @property
    def name(self) -> str:
        """Return the dataset name."""
        ...

    @property
    def block_cache_enabled(self) -> bool:
        """Return whether data blocks of this dataset are cached on read."""
        ...

    @property
    def in_memory(self) -> bool:
        """Return whether cached blocks are flagged as in-memory."""
        ...

    @property
    def cache_data_on_write(self) -> bool:
        """Return whether data blocks are cached when written."""
        ...

    @property
    def cache_indexes_on_write(self) -> bool:
        """Return whether index blocks are cached when written."""
        ...

    @property
    def cache_blooms_on_write(self) -> bool:
        """Return whether bloom blocks are cached when written."""
        ...

    @property
    def evict_blocks_on_close(self) -> bool:
        """Return whether blocks are evicted when a file is closed."""
        ...

    @property
    def prefetch_blocks_on_open(self) -> bool:
        """Return whether blocks are prefetched when a file is opened."""
        ...


class DatasetCacheOverride(StructBaseStrict, frozen=True, rename="kebab"):
    """Concrete per-dataset override snapshot."""

    name: str = ""
    block_cache_enabled: bool = True
    in_memory: bool = DEFAULT_IN_MEMORY
    cache_data_on_write: bool = False
    cache_indexes_on_write: bool = False
    cache_blooms_on_write: bool = False
    evict_blocks_on_close: bool = False
    prefetch_blocks_on_open: bool = False


__all__ = [
    "CACHE_BLOCKS_ON_WRITE_KEY",
    "CACHE_BLOOM_BLOCKS_ON_WRITE_KEY",
    "CACHE_DATA_BLOCKS_COMPRESSED_KEY",
    "CACHE_DATA_ON_READ_KEY",
    "CACHE_INDEX_BLOCKS_ON_WRITE_KEY",
    "DEFAULT_ENV_PREFIX",
    "DROP_BEHIND_CACHE_COMPACTION_KEY",
    "EVICT_BLOCKS_ON_CLOSE_KEY",
    "PREFETCH_BLOCKS_ON_OPEN_KEY",
    "SETTINGS_KEYS",
    "DatasetCacheOverride",
    "DatasetOverride",
    "GlobalSettings",
    "env_name",
]
