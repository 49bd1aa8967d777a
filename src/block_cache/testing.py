"""Test-only builders for resolved cache policies.

Production code paths never import this module. The returned policies are
new values; the source policy is left untouched.
"""

from __future__ import annotations

import msgspec

from block_cache.policy import ResolvedPolicy


def policy_for_testing(
    policy: ResolvedPolicy,
    *,
    cache_data_on_write: bool | None = None,
    evict_on_close: bool | None = None,
) -> ResolvedPolicy:
    """Return a copy of ``policy`` with the test-adjustable flags replaced.

    Parameters
    ----------
    policy
        Source policy.
    cache_data_on_write
        Replacement cache-data-on-write flag, when given.
    evict_on_close
        Replacement evict-on-close flag, when given.

    Returns
    -------
    ResolvedPolicy
        New policy sharing the source's backend and allocator.
    """
    changes: dict[str, bool] = {}
    if cache_data_on_write is not None:
        changes["cache_data_on_write"] = cache_data_on_write
    if evict_on_close is not None:
        changes["evict_on_close"] = evict_on_close
    return msgspec.structs.replace(policy, **changes)


__all__ = ["policy_for_testing"]
