"""Supabase persistence for completed route journeys."""

from __future__ import annotations

import logging
from dataclasses import asdict, fields
from typing import Any

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import EnhancedRoute, RouteHistoryRecord, RouteRequest

logger = logging.getLogger(__name__)

FAVORITE_MIN_RATING = 4

_RECORD_FIELDS = {item.name for item in fields(RouteHistoryRecord)}


def _client():
    supabase = get_supabase_client()
    if supabase is None:
        raise RuntimeError(
            "Supabase not configured. Set ZENROUTE_SUPABASE_URL and ZENROUTE_SUPABASE_KEY environment variables."
        )
    return supabase


def _record_from_row(row: dict[str, Any]) -> RouteHistoryRecord:
    return RouteHistoryRecord(**{key: value for key, value in row.items() if key in _RECORD_FIELDS})


def route_history_from_enhanced(
    route: EnhancedRoute,
    request: RouteRequest,
    user_id: str,
    *,
    stress_level_before: int | None = None,
    stress_level_after: int | None = None,
    rating: int | None = None,
    notes: str | None = None,
) -> RouteHistoryRecord:
    """Build a history record for a journey taken along an evaluated route."""
    duration = route.duration_in_traffic or route.duration
    return RouteHistoryRecord(
        user_id=user_id,
        origin_lat=request.origin.lat,
        origin_lng=request.origin.lng,
        destination_lat=request.destination.lat,
        destination_lng=request.destination.lng,
        route_name=route.name,
        distance_meters=route.distance.value,
        duration_seconds=duration.value,
        transport_mode=request.options.mode,
        therapy_used=route.therapy_type,
        stress_level_before=stress_level_before,
        stress_level_after=stress_level_after,
        rating=rating,
        notes=notes,
    )


def save_route_history(record: RouteHistoryRecord) -> RouteHistoryRecord:
    if record.rating is not None and not 1 <= record.rating <= 5:
        raise ValueError(f"Rating must be between 1 and 5, got {record.rating}.")
    payload = {key: value for key, value in asdict(record).items() if key not in ("id", "created_at")}
    response = _client().table(settings.route_history_table).insert(payload).execute()
    rows = response.data or []
    if not rows:
        raise RuntimeError("Route history insert returned no rows.")
    logger.info(f"Saved route history {rows[0].get('id')} for user {record.user_id}")
    return _record_from_row(rows[0])


def get_route_history(user_id: str, limit: int = 20) -> list[RouteHistoryRecord]:
    """Most recent journeys first."""
    response = (
        _client()
        .table(settings.route_history_table)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return [_record_from_row(row) for row in response.data or []]


def get_favorite_routes(user_id: str, limit: int = 10) -> list[RouteHistoryRecord]:
    """Journeys rated 4 or higher, best rated first."""
    response = (
        _client()
        .table(settings.route_history_table)
        .select("*")
        .eq("user_id", user_id)
        .gte("rating", FAVORITE_MIN_RATING)
        .order("rating", desc=True)
        .limit(limit)
        .execute()
    )
    return [_record_from_row(row) for row in response.data or []]
