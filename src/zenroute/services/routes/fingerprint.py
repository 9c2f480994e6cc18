"""Stable cache keys for route requests."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from ...config import settings
from ...models.domain import RouteRequest


def _canonical(value: Any) -> Any:
    """Normalise a value into JSON-compatible data with a single representation."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if is_dataclass(value) and not isinstance(value, type):
        return _canonical(asdict(value))
    if isinstance(value, Mapping):
        return {str(key): _canonical(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    raise TypeError(f"Cannot fingerprint value of type {type(value).__name__}")


def canonical_json(request: RouteRequest | Mapping[str, Any]) -> str:
    """Serialise a request with sorted keys and no insignificant whitespace."""
    return json.dumps(_canonical(request), sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def fingerprint(request: RouteRequest | Mapping[str, Any], prefix: str | None = None) -> str:
    """Derive the cache key for a route request.

    The key depends only on field values: nested option ordering, datetime
    timezone representation and int/float spelling of coordinates do not
    change it, and it is identical across process restarts.
    """
    digest = hashlib.sha256(canonical_json(request).encode("utf-8")).hexdigest()
    return f"{prefix or settings.route_cache_key_prefix}:{digest}"
