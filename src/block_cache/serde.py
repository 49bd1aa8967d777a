"""Shared msgspec struct bases and validation helpers."""

from __future__ import annotations

import re

import msgspec


class StructBaseStrict(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=True,
):
    """Base struct for strict configuration contracts."""


_VALIDATION_RE = re.compile(r"^(?P<summary>.*?)(?:\s+-\s+at\s+`(?P<path>[^`]+)`)?$")


def validation_error_payload(exc: msgspec.ValidationError) -> dict[str, str]:
    """Normalize a msgspec ValidationError for diagnostics.

    Parameters
    ----------
    exc
        ValidationError raised by msgspec decoding/conversion.

    Returns
    -------
    dict[str, str]
        Normalized error payload containing type, summary, and optional path.
    """
    message = str(exc).strip()
    payload: dict[str, str] = {"type": exc.__class__.__name__}
    match = _VALIDATION_RE.match(message)
    if match is None:
        payload["summary"] = message
        return payload
    summary = (match.group("summary") or "").strip()
    if summary:
        payload["summary"] = summary
    path = match.group("path")
    if path:
        payload["path"] = path
    return payload


__all__ = ["StructBaseStrict", "validation_error_payload"]
