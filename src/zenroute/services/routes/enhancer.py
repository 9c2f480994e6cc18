"""Turn provider routes into presentation-ready enhanced routes."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import EnhancedRoute, RawRoute
from .stress import TrafficThresholds, classify, recommend_therapy, traffic_level

STRESS_COLORS: dict[str, str] = {
    "low": "#A8E6CF",
    "medium": "#FFD3A5",
    "high": "#FFB3BA",
}


def enhance_route(route: RawRoute, index: int, thresholds: TrafficThresholds | None = None) -> EnhancedRoute:
    thresholds = thresholds or TrafficThresholds.from_settings()
    analysis = classify(route, thresholds)
    return EnhancedRoute(
        id=f"route-{index}",
        name=route.summary or f"Route {index + 1}",
        summary=route.summary,
        distance=route.distance,
        duration=route.duration,
        duration_in_traffic=route.duration_in_traffic,
        stress_level=analysis.stress_level,
        stress_factors=analysis.factors,
        therapy_type=recommend_therapy(analysis.stress_level),
        color=STRESS_COLORS[analysis.stress_level],
        traffic=traffic_level(route, thresholds),
        legs=route.legs,
        overview_polyline=route.overview_polyline,
        warnings=route.warnings,
    )


def enhance(routes: Sequence[RawRoute], thresholds: TrafficThresholds | None = None) -> list[EnhancedRoute]:
    """Enhance routes in input order; ids follow the position in the batch."""
    thresholds = thresholds or TrafficThresholds.from_settings()
    return [enhance_route(route, index, thresholds) for index, route in enumerate(routes)]
