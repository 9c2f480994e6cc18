"""HTTP client for the Google Directions API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import settings
from ...models.domain import LatLng, RawRoute, RouteLeg, RouteRequest, RouteStep, TextValue
from .errors import ConfigurationError, MalformedResponseError, NetworkError, ProviderError

logger = logging.getLogger(__name__)

# Provider statuses that mean the credentials were rejected rather than the request.
CREDENTIAL_STATUSES = frozenset({"REQUEST_DENIED"})


class DirectionsGateway:
    """Call boundary to the directions provider.

    Every transport, HTTP and payload failure is normalised into one of the
    ``GatewayError`` kinds so callers never see httpx exceptions.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        connect_timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.base_url = base_url or settings.directions_base_url
        self.timeout = timeout if timeout is not None else settings.directions_timeout_seconds
        self.connect_timeout = (
            connect_timeout if connect_timeout is not None else settings.directions_connect_timeout_seconds
        )
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.base_url)

    def build_params(self, request: RouteRequest) -> list[tuple[str, str]]:
        """Translate a route request into Directions API query parameters."""
        options = request.options
        params: list[tuple[str, str]] = [
            ("origin", _format_point(request.origin)),
            ("destination", _format_point(request.destination)),
            ("mode", options.mode),
            ("units", options.units),
        ]
        if options.alternatives:
            params.append(("alternatives", "true"))
        avoid = [
            name
            for name, enabled in (
                ("tolls", options.avoid_tolls),
                ("highways", options.avoid_highways),
                ("ferries", options.avoid_ferries),
            )
            if enabled
        ]
        if avoid:
            params.append(("avoid", "|".join(avoid)))
        if options.departure_time is not None:
            params.append(("departure_time", str(int(options.departure_time.timestamp()))))
        if request.waypoints:
            params.append(("waypoints", "|".join(_format_point(point) for point in request.waypoints)))
        params.append(("key", self.api_key or ""))
        return params

    async def fetch_routes(self, request: RouteRequest) -> list[RawRoute]:
        """Fetch candidate routes for a request.

        Raises:
            ConfigurationError: API key missing or rejected.
            NetworkError: transport failure, timeout, or provider 5xx.
            ProviderError: provider answered with a non-OK status.
            MalformedResponseError: payload could not be parsed into routes.
        """
        if not self.configured:
            raise ConfigurationError("Directions provider API key is not configured.")

        params = self.build_params(request)
        logger.info(
            f"Requesting {request.options.mode} directions "
            f"{_format_point(request.origin)} -> {_format_point(request.destination)}"
        )
        try:
            response = await self._get(params)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Directions request timed out: {exc}") from exc
        except (httpx.UnsupportedProtocol, httpx.InvalidURL) as exc:
            raise ConfigurationError(f"Directions endpoint is misconfigured: {exc}") from exc
        except (httpx.TransportError, OSError) as exc:
            raise NetworkError(f"Unable to reach the directions service at {self.base_url}: {exc}") from exc

        payload = self._decode(response)
        return parse_routes(payload)

    async def check_health(self) -> bool:
        """Probe the provider with a minimal request."""
        if not self.configured:
            return False
        probe = RouteRequest(origin=LatLng(37.7749, -122.4194), destination=LatLng(37.7849, -122.4094))
        try:
            await self.fetch_routes(probe)
        except (ConfigurationError, NetworkError, MalformedResponseError) as exc:
            logger.warning(f"Directions health check failed: {exc}")
            return False
        except ProviderError:
            # The provider answered, so it is reachable.
            return True
        return True

    async def _get(self, params: list[tuple[str, str]]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(self.base_url, params=params)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout)) as client:
            return await client.get(self.base_url, params=params)

    def _decode(self, response: httpx.Response) -> dict:
        status_code = response.status_code
        if status_code in (401, 403):
            raise ConfigurationError(
                f"Directions provider rejected the credentials (HTTP {status_code}).",
                status_code=status_code,
            )
        if status_code >= 500:
            raise NetworkError(f"Directions provider unavailable (HTTP {status_code}).", status_code=status_code)

        try:
            data = response.json()
        except ValueError as exc:
            if status_code >= 400:
                raise ProviderError(
                    f"HTTP {status_code}: {response.reason_phrase}", status_code=status_code
                ) from exc
            logger.error(f"Directions response is not valid JSON: {response.text[:200]!r}")
            raise MalformedResponseError("Directions response is not valid JSON.", status_code=status_code) from exc

        if not isinstance(data, dict):
            logger.error(f"Directions response has unexpected shape: {type(data).__name__}")
            raise MalformedResponseError("Directions response has an unexpected shape.", status_code=status_code)

        provider_status = data.get("status")
        message = data.get("error_message") or data.get("error")
        if status_code == 429:
            raise ProviderError(
                message or "Directions API quota exceeded.",
                status_code=status_code,
                provider_status=provider_status,
            )
        if status_code >= 400:
            raise ProviderError(
                message or f"HTTP {status_code}: {response.reason_phrase}",
                status_code=status_code,
                provider_status=provider_status,
            )
        if provider_status in CREDENTIAL_STATUSES:
            raise ConfigurationError(
                message or f"Directions request denied: {provider_status}",
                status_code=status_code,
                provider_status=provider_status,
            )
        if provider_status != "OK":
            if provider_status is None:
                logger.error("Directions response is missing its status field.")
                raise MalformedResponseError("Directions response is missing its status.", status_code=status_code)
            raise ProviderError(message or provider_status, status_code=status_code, provider_status=provider_status)
        return data


def _format_point(point: LatLng) -> str:
    return f"{point.lat},{point.lng}"


def _text_value(data: Any) -> TextValue:
    return TextValue(text=str(data["text"]), value=int(data["value"]))


def _lat_lng(data: Any) -> LatLng:
    return LatLng(lat=float(data["lat"]), lng=float(data["lng"]))


def _parse_step(data: dict) -> RouteStep:
    return RouteStep(
        distance=_text_value(data["distance"]),
        duration=_text_value(data["duration"]),
        html_instructions=str(data.get("html_instructions", "")),
        start_location=_lat_lng(data["start_location"]),
        end_location=_lat_lng(data["end_location"]),
        maneuver=data.get("maneuver"),
    )


def _parse_leg(data: dict) -> RouteLeg:
    return RouteLeg(
        distance=_text_value(data["distance"]),
        duration=_text_value(data["duration"]),
        start_address=str(data.get("start_address", "")),
        end_address=str(data.get("end_address", "")),
        steps=tuple(_parse_step(step) for step in data.get("steps") or ()),
    )


def _parse_route(data: dict) -> RawRoute:
    legs = data["legs"]
    if not legs:
        raise ValueError("route has no legs")
    # Headline distance and duration come from the first leg.
    first_leg = legs[0]
    traffic = first_leg.get("duration_in_traffic")
    return RawRoute(
        summary=str(data.get("summary") or ""),
        distance=_text_value(first_leg["distance"]),
        duration=_text_value(first_leg["duration"]),
        duration_in_traffic=_text_value(traffic) if traffic else None,
        legs=tuple(_parse_leg(leg) for leg in legs),
        overview_polyline=str((data.get("overview_polyline") or {}).get("points", "")),
        warnings=tuple(str(warning) for warning in data.get("warnings") or ()),
        copyrights=str(data.get("copyrights") or ""),
    )


def parse_routes(payload: dict) -> list[RawRoute]:
    """Convert a Directions API payload into raw routes."""
    routes = payload.get("routes")
    if not isinstance(routes, list):
        logger.error("Directions response has no routes list.")
        raise MalformedResponseError("Directions response is missing routes.")
    parsed: list[RawRoute] = []
    for index, route in enumerate(routes):
        try:
            parsed.append(_parse_route(route))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.error(f"Could not parse route {index} from directions response: {exc!r}")
            raise MalformedResponseError(f"Route {index} in the directions response is malformed: {exc}") from exc
    return parsed
