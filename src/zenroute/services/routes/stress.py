"""Stress classification and therapy recommendation for routes.

Both are pure functions of the route attributes. Traffic ratio is
``duration_in_traffic / duration``; the thresholds are configuration, not
physical constants.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...config import settings
from ...models.domain import STRESS_RANK, RawRoute, StressAnalysis, StressLevel, TrafficLabel

HEAVY_TRAFFIC = "Heavy traffic"
MODERATE_TRAFFIC = "Moderate traffic"
LIGHT_TRAFFIC = "Light traffic"

THERAPY_BY_STRESS: dict[str, str] = {
    "low": "Nature Sounds",
    "medium": "Breathing Exercise",
    "high": "Guided Meditation",
}

TRAFFIC_LABELS: dict[str, TrafficLabel] = {
    "low": "Light",
    "medium": "Moderate",
    "high": "Heavy",
}

# (keywords, label) pairs checked in order against the lower-cased warning text.
WARNING_LABELS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("construction", "roadwork", "road work"), "Construction ahead"),
    (("closure", "closed"), "Road closure"),
    (("accident", "incident", "collision"), "Traffic incident"),
    (("toll",), "Toll roads"),
    (("ferry", "ferries"), "Ferry crossing"),
    (("sidewalk", "pedestrian", "walking directions"), "Limited pedestrian paths"),
    (("bicycl", "bike lane", "cycling"), "Limited bike lanes"),
)


@dataclass(frozen=True, slots=True)
class TrafficThresholds:
    moderate_ratio: float = 1.2
    heavy_ratio: float = 1.5

    @classmethod
    def from_settings(cls) -> "TrafficThresholds":
        return cls(moderate_ratio=settings.traffic_moderate_ratio, heavy_ratio=settings.traffic_heavy_ratio)


def traffic_ratio(route: RawRoute) -> Optional[float]:
    """Return the in-traffic slowdown ratio, or None without usable traffic data."""
    if route.duration_in_traffic is None or route.duration.value <= 0:
        return None
    return route.duration_in_traffic.value / route.duration.value


def _traffic_stress(ratio: Optional[float], thresholds: TrafficThresholds) -> StressLevel:
    if ratio is None:
        return "low"
    if ratio > thresholds.heavy_ratio:
        return "high"
    if ratio > thresholds.moderate_ratio:
        return "medium"
    return "low"


def warning_label(warning: str) -> str:
    """Map a provider warning onto a short human readable stress factor."""
    text = warning.strip()
    lowered = text.lower()
    for keywords, label in WARNING_LABELS:
        if any(keyword in lowered for keyword in keywords):
            return label
    first_sentence = text.split(".", 1)[0].strip()
    return first_sentence or "Route warning"


def _max_level(*levels: StressLevel) -> StressLevel:
    return max(levels, key=STRESS_RANK.__getitem__)


def classify(route: RawRoute, thresholds: TrafficThresholds | None = None) -> StressAnalysis:
    """Classify a route's stress level from its traffic ratio and warnings."""
    thresholds = thresholds or TrafficThresholds.from_settings()
    level: StressLevel = "low"
    factors: list[str] = []

    def trigger(floor: StressLevel, factor: str) -> None:
        nonlocal level
        level = _max_level(level, floor)
        if factor not in factors:
            factors.append(factor)

    ratio = traffic_ratio(route)
    traffic_level = _traffic_stress(ratio, thresholds)
    if traffic_level == "high":
        trigger("high", HEAVY_TRAFFIC)
    elif traffic_level == "medium":
        trigger("medium", MODERATE_TRAFFIC)

    warnings = [warning for warning in route.warnings if warning and warning.strip()]
    if warnings:
        trigger("medium", warning_label(warnings[0]))

    if level == "low" and ratio is not None:
        factors.append(LIGHT_TRAFFIC)

    return StressAnalysis(stress_level=level, factors=tuple(factors))


def traffic_level(route: RawRoute, thresholds: TrafficThresholds | None = None) -> TrafficLabel:
    """Traffic label computed from the traffic ratio alone."""
    thresholds = thresholds or TrafficThresholds.from_settings()
    return TRAFFIC_LABELS[_traffic_stress(traffic_ratio(route), thresholds)]


def recommend_therapy(level: StressLevel) -> str:
    return THERAPY_BY_STRESS[level]
