"""Load cache settings from TOML configuration files."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TypeVar, cast

import msgspec

from block_cache.serde import validation_error_payload
from block_cache.settings import DatasetCacheOverride, GlobalSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIG_TABLE = "block_cache"
DATASETS_TABLE = "datasets"


def load_global_settings(path: Path | str) -> GlobalSettings:
    """Load global settings from the ``[block_cache]`` table of a TOML file.

    ``pyproject.toml`` files are read from ``[tool.block_cache]`` instead.
    A file without the table yields default settings.

    Parameters
    ----------
    path
        TOML file path.

    Returns
    -------
    GlobalSettings
        Validated settings snapshot.
    """
    location = str(path)
    table = dict(_policy_table(Path(path)))
    table.pop(DATASETS_TABLE, None)
    return _convert(table, GlobalSettings, location=location)


def load_dataset_overrides(path: Path | str) -> dict[str, DatasetCacheOverride]:
    """Load ``[block_cache.datasets.<name>]`` tables as dataset overrides.

    Returns
    -------
    dict[str, DatasetCacheOverride]
        Overrides keyed by dataset name.

    Raises
    ------
    TypeError
        Raised when the datasets table or one of its entries is not a table.
    """
    table = _policy_table(Path(path))
    datasets = table.get(DATASETS_TABLE, {})
    if not isinstance(datasets, Mapping):
        msg = f"Expected [{CONFIG_TABLE}.{DATASETS_TABLE}] table in {path}."
        raise TypeError(msg)
    overrides: dict[str, DatasetCacheOverride] = {}
    for name, raw in datasets.items():
        if not isinstance(raw, Mapping):
            msg = f"Expected [{CONFIG_TABLE}.{DATASETS_TABLE}.{name}] table in {path}."
            raise TypeError(msg)
        overrides[name] = _convert(
            {**raw, "name": name},
            DatasetCacheOverride,
            location=f"{path}:{DATASETS_TABLE}.{name}",
        )
    logger.debug("Loaded %d dataset cache overrides from %s", len(overrides), path)
    return overrides


def _read_toml(path: Path) -> dict[str, object]:
    payload = msgspec.toml.decode(path.read_text(encoding="utf-8"), type=object, strict=True)
    if not isinstance(payload, dict):
        msg = f"Expected TOML mapping in {path}, got {type(payload).__name__}."
        raise TypeError(msg)
    return cast("dict[str, object]", payload)


def _policy_table(path: Path) -> Mapping[str, object]:
    raw = _read_toml(path)
    if path.name == "pyproject.toml":
        tool = raw.get("tool", {})
        table = tool.get(CONFIG_TABLE) if isinstance(tool, Mapping) else None
    else:
        table = raw.get(CONFIG_TABLE)
    if table is None:
        logger.debug("No [%s] table in %s; using defaults", CONFIG_TABLE, path)
        return {}
    if not isinstance(table, Mapping):
        msg = f"Expected [{CONFIG_TABLE}] table in {path}, got {type(table).__name__}."
        raise TypeError(msg)
    return cast("Mapping[str, object]", table)


def _convert(payload: Mapping[str, object], target: type[T], *, location: str) -> T:
    try:
        return msgspec.convert(dict(payload), type=target, strict=True)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Config validation failed for {location}: {details}"
        raise ValueError(msg) from exc


__all__ = ["CONFIG_TABLE", "DATASETS_TABLE", "load_dataset_overrides", "load_global_settings"]
