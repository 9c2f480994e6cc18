"""Route evaluation request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import (
    EnhancedRoute,
    EvaluationState,
    LatLng,
    RouteHistoryRecord,
    RouteLeg,
    RouteOptions,
    RouteRequest,
    RouteStep,
    TextValue,
)
from ..services.outputs.route_formatter import format_distance, format_duration


class LatLngModel(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    def to_domain(self) -> LatLng:
        return LatLng(lat=self.lat, lng=self.lng)


class RouteOptionsModel(BaseModel):
    mode: Literal["driving", "walking", "bicycling", "transit"] = "driving"
    alternatives: bool = False
    avoid_highways: bool = False
    avoid_tolls: bool = False
    avoid_ferries: bool = False
    units: Literal["metric", "imperial"] = "metric"
    departure_time: Optional[datetime] = Field(default=None, description="Departure time used for traffic data.")

    def to_domain(self) -> RouteOptions:
        return RouteOptions(**self.model_dump())


class RouteRequestModel(BaseModel):
    origin: LatLngModel
    destination: LatLngModel
    options: RouteOptionsModel = Field(default_factory=RouteOptionsModel)
    waypoints: List[LatLngModel] = Field(default_factory=list, max_length=25)

    def to_domain(self) -> RouteRequest:
        return RouteRequest(
            origin=self.origin.to_domain(),
            destination=self.destination.to_domain(),
            options=self.options.to_domain(),
            waypoints=tuple(point.to_domain() for point in self.waypoints),
        )


class EvaluateRoutesRequest(BaseModel):
    session_id: str = Field(default="default", min_length=1, description="Caller session owning the evaluation state.")
    request: RouteRequestModel


class SessionRequest(BaseModel):
    session_id: str = Field(default="default", min_length=1)


class TextValueModel(BaseModel):
    text: str
    value: int

    @classmethod
    def from_domain(cls, item: TextValue) -> "TextValueModel":
        return cls(text=item.text, value=item.value)


class RouteStepModel(BaseModel):
    distance: TextValueModel
    duration: TextValueModel
    html_instructions: str
    start_location: LatLngModel
    end_location: LatLngModel
    maneuver: Optional[str] = None

    @classmethod
    def from_domain(cls, step: RouteStep) -> "RouteStepModel":
        return cls(
            distance=TextValueModel.from_domain(step.distance),
            duration=TextValueModel.from_domain(step.duration),
            html_instructions=step.html_instructions,
            start_location=LatLngModel(lat=step.start_location.lat, lng=step.start_location.lng),
            end_location=LatLngModel(lat=step.end_location.lat, lng=step.end_location.lng),
            maneuver=step.maneuver,
        )


class RouteLegModel(BaseModel):
    distance: TextValueModel
    duration: TextValueModel
    start_address: str
    end_address: str
    steps: List[RouteStepModel]

    @classmethod
    def from_domain(cls, leg: RouteLeg) -> "RouteLegModel":
        return cls(
            distance=TextValueModel.from_domain(leg.distance),
            duration=TextValueModel.from_domain(leg.duration),
            start_address=leg.start_address,
            end_address=leg.end_address,
            steps=[RouteStepModel.from_domain(step) for step in leg.steps],
        )


class EnhancedRouteModel(BaseModel):
    id: str
    name: str
    summary: str
    distance: TextValueModel
    duration: TextValueModel
    duration_in_traffic: Optional[TextValueModel] = None
    stress_level: Literal["low", "medium", "high"]
    stress_factors: List[str]
    therapy_type: str
    color: str
    traffic: Literal["Light", "Moderate", "Heavy"]
    overview_polyline: str
    legs: List[RouteLegModel]
    warnings: List[str]
    display_duration: str
    display_distance: str

    @classmethod
    def from_domain(cls, route: EnhancedRoute) -> "EnhancedRouteModel":
        effective = route.duration_in_traffic or route.duration
        return cls(
            id=route.id,
            name=route.name,
            summary=route.summary,
            distance=TextValueModel.from_domain(route.distance),
            duration=TextValueModel.from_domain(route.duration),
            duration_in_traffic=(
                TextValueModel.from_domain(route.duration_in_traffic) if route.duration_in_traffic else None
            ),
            stress_level=route.stress_level,
            stress_factors=list(route.stress_factors),
            therapy_type=route.therapy_type,
            color=route.color,
            traffic=route.traffic,
            overview_polyline=route.overview_polyline,
            legs=[RouteLegModel.from_domain(leg) for leg in route.legs],
            warnings=list(route.warnings),
            display_duration=format_duration(effective.value),
            display_distance=format_distance(route.distance.value),
        )


class EvaluationStateModel(BaseModel):
    session_id: str
    phase: Literal["idle", "loading", "success", "error"]
    routes: List[EnhancedRouteModel]
    error: Optional[str] = None
    cached: bool = False
    source: Optional[Literal["live", "demo"]] = None
    fingerprint: Optional[str] = None

    @classmethod
    def from_domain(cls, session_id: str, state: EvaluationState) -> "EvaluationStateModel":
        return cls(
            session_id=session_id,
            phase=state.phase,
            routes=[EnhancedRouteModel.from_domain(route) for route in state.routes],
            error=state.error,
            cached=state.cached,
            source=state.source,
            fingerprint=state.fingerprint,
        )


class DemoRoutesResponse(BaseModel):
    version: str
    routes: List[EnhancedRouteModel]


class RouteHistoryCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    origin_lat: float
    origin_lng: float
    destination_lat: float
    destination_lng: float
    distance_meters: int = Field(..., ge=0)
    duration_seconds: int = Field(..., ge=0)
    transport_mode: Literal["driving", "walking", "bicycling", "transit"] = "driving"
    route_name: Optional[str] = None
    stress_level_before: Optional[int] = Field(default=None, ge=1, le=10)
    stress_level_after: Optional[int] = Field(default=None, ge=1, le=10)
    therapy_used: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None

    def to_domain(self) -> RouteHistoryRecord:
        return RouteHistoryRecord(**self.model_dump())


class RouteHistoryModel(RouteHistoryCreate):
    id: Optional[str] = None
    created_at: Optional[str] = None


class RouteJourneyCreate(BaseModel):
    """A journey taken along one of the routes a session evaluated."""

    session_id: str = Field(default="default", min_length=1)
    route_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    stress_level_before: Optional[int] = Field(default=None, ge=1, le=10)
    stress_level_after: Optional[int] = Field(default=None, ge=1, le=10)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None
