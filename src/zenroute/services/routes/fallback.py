"""Offline demonstration routes used when the directions provider is unavailable.

The dataset ships pre-classified so demo behaviour does not change when the
classification thresholds do. Bump ``DEMO_DATASET_VERSION`` on any edit.
"""

from __future__ import annotations

from ...models.domain import EnhancedRoute, TextValue

DEMO_DATASET_VERSION = "2025.06.1"

_DEMO_ROUTES: tuple[EnhancedRoute, ...] = (
    EnhancedRoute(
        id="demo-route-1",
        name="Scenic Route",
        summary="Via Park Avenue",
        distance=TextValue("5.2 km", 5200),
        duration=TextValue("12 mins", 720),
        duration_in_traffic=TextValue("13 mins", 780),
        stress_level="low",
        stress_factors=("Light traffic", "Scenic views"),
        therapy_type="Nature Sounds",
        color="#A8E6CF",
        traffic="Light",
        overview_polyline="demo_polyline_1",
    ),
    EnhancedRoute(
        id="demo-route-2",
        name="Balanced Route",
        summary="Via Market Street",
        distance=TextValue("5.0 km", 5000),
        duration=TextValue("10 mins", 600),
        duration_in_traffic=TextValue("13 mins", 780),
        stress_level="medium",
        stress_factors=("Moderate traffic",),
        therapy_type="Breathing Exercise",
        color="#FFD3A5",
        traffic="Moderate",
        overview_polyline="demo_polyline_2",
    ),
    EnhancedRoute(
        id="demo-route-3",
        name="Express Route",
        summary="Via Highway 101",
        distance=TextValue("4.8 km", 4800),
        duration=TextValue("8 mins", 480),
        duration_in_traffic=TextValue("18 mins", 1080),
        stress_level="high",
        stress_factors=("Heavy traffic", "Construction zones"),
        therapy_type="Guided Meditation",
        color="#FFB3BA",
        traffic="Heavy",
        overview_polyline="demo_polyline_3",
        warnings=("Construction ahead",),
    ),
)


def demo_routes() -> tuple[EnhancedRoute, ...]:
    return _DEMO_ROUTES
