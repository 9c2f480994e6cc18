"""Domain models for route requests, provider routes and evaluation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

TravelMode = Literal["driving", "walking", "bicycling", "transit"]
Units = Literal["metric", "imperial"]
StressLevel = Literal["low", "medium", "high"]
TrafficLabel = Literal["Light", "Moderate", "Heavy"]
SourceFlag = Literal["live", "demo"]
Phase = Literal["idle", "loading", "success", "error"]

STRESS_RANK: dict[str, int] = {"low": 0, "medium": 1, "high": 2}


@dataclass(frozen=True, slots=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class RouteOptions:
    """Provider options attached to a route request.

    A naive ``departure_time`` is taken to be UTC so the cache key and the
    provider request always agree on the instant.
    """

    mode: TravelMode = "driving"
    alternatives: bool = False
    avoid_highways: bool = False
    avoid_tolls: bool = False
    avoid_ferries: bool = False
    units: Units = "metric"
    departure_time: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.departure_time is not None and self.departure_time.tzinfo is None:
            object.__setattr__(self, "departure_time", self.departure_time.replace(tzinfo=timezone.utc))


@dataclass(frozen=True, slots=True)
class RouteRequest:
    """Immutable origin/destination pair plus options."""

    origin: LatLng
    destination: LatLng
    options: RouteOptions = field(default_factory=RouteOptions)
    waypoints: tuple[LatLng, ...] = ()


@dataclass(frozen=True, slots=True)
class TextValue:
    """Human readable text with its numeric value (meters or seconds)."""

    text: str
    value: int


@dataclass(frozen=True, slots=True)
class RouteStep:
    distance: TextValue
    duration: TextValue
    html_instructions: str
    start_location: LatLng
    end_location: LatLng
    maneuver: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RouteLeg:
    distance: TextValue
    duration: TextValue
    start_address: str
    end_address: str
    steps: tuple[RouteStep, ...] = ()


@dataclass(frozen=True, slots=True)
class RawRoute:
    """Route attributes as returned by the directions provider."""

    summary: str
    distance: TextValue
    duration: TextValue
    overview_polyline: str
    legs: tuple[RouteLeg, ...] = ()
    warnings: tuple[str, ...] = ()
    duration_in_traffic: Optional[TextValue] = None
    copyrights: str = ""


@dataclass(frozen=True, slots=True)
class StressAnalysis:
    stress_level: StressLevel
    factors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class EnhancedRoute:
    """Provider route augmented with stress and therapy metadata for presentation."""

    id: str
    name: str
    summary: str
    distance: TextValue
    duration: TextValue
    stress_level: StressLevel
    stress_factors: tuple[str, ...]
    therapy_type: str
    color: str
    traffic: TrafficLabel
    overview_polyline: str
    legs: tuple[RouteLeg, ...] = ()
    warnings: tuple[str, ...] = ()
    duration_in_traffic: Optional[TextValue] = None


@dataclass(frozen=True, slots=True)
class CacheEntry:
    routes: tuple[EnhancedRoute, ...]
    cached_at: float
    source: SourceFlag = "live"


@dataclass(frozen=True, slots=True)
class EvaluationState:
    """Externally observable state of a route evaluator."""

    phase: Phase = "idle"
    routes: tuple[EnhancedRoute, ...] = ()
    error: Optional[str] = None
    cached: bool = False
    source: Optional[SourceFlag] = None
    fingerprint: Optional[str] = None


@dataclass(slots=True)
class RouteHistoryRecord:
    """A completed journey saved for a user."""

    user_id: str
    origin_lat: float
    origin_lng: float
    destination_lat: float
    destination_lng: float
    distance_meters: int
    duration_seconds: int
    transport_mode: TravelMode
    route_name: Optional[str] = None
    stress_level_before: Optional[int] = None
    stress_level_after: Optional[int] = None
    therapy_used: Optional[str] = None
    rating: Optional[int] = None
    notes: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
