"""Route evaluation orchestration service."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Sequence

from ...config import settings
from ...models.domain import (
    CacheEntry,
    EnhancedRoute,
    EvaluationState,
    LatLng,
    RouteOptions,
    RouteRequest,
)
from .cache import ResponseCache
from .directions_client import DirectionsGateway
from .enhancer import enhance
from .errors import GatewayError, MalformedResponseError, is_recoverable
from .fallback import DEMO_DATASET_VERSION, demo_routes
from .fingerprint import fingerprint
from .stress import TrafficThresholds

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to fetch routes"
CANCELLED_MESSAGE = "Route evaluation was cancelled"

StateListener = Callable[[EvaluationState], None]


class RouteEvaluator:
    """Owns the evaluation state for one caller.

    ``evaluate`` moves the state through idle -> loading -> success/error and
    notifies subscribers on every transition. A newer call always wins: results
    of superseded calls are dropped when they arrive.
    """

    def __init__(
        self,
        gateway: DirectionsGateway | None = None,
        cache: ResponseCache | None = None,
        thresholds: TrafficThresholds | None = None,
        fallback_provider: Callable[[], Sequence[EnhancedRoute]] = demo_routes,
    ) -> None:
        self.gateway = gateway if gateway is not None else DirectionsGateway()
        self.cache = cache if cache is not None else ResponseCache()
        self.thresholds = thresholds or TrafficThresholds.from_settings()
        self.fallback_provider = fallback_provider
        self._state = EvaluationState()
        self._routes_request: RouteRequest | None = None
        self._listeners: list[StateListener] = []
        self._sequence = 0

    def current_state(self) -> EvaluationState:
        return self._state

    def routes_request(self) -> RouteRequest | None:
        """The request that produced the routes currently held in state."""
        return self._routes_request

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_error(self) -> None:
        if self._state.error is not None:
            self._transition(error=None)

    def reset(self) -> None:
        self._sequence += 1
        self._routes_request = None
        self._set_state(EvaluationState())

    async def evaluate(self, request: RouteRequest) -> EvaluationState:
        self._sequence += 1
        token = self._sequence
        key = fingerprint(request)
        self._transition(phase="loading", error=None, fingerprint=key)

        entry = self.cache.get(key)
        if entry is not None:
            logger.debug(f"Serving {len(entry.routes)} cached routes for {key}")
            self._succeed(request, entry.routes, cached=True, source=entry.source)
            return self._state

        try:
            routes = await self.cache.single_flight(key, lambda: self._fetch_and_enhance(request, key))
        except asyncio.CancelledError:
            if not self._is_stale(token, key):
                logger.info(f"Route evaluation for {key} was cancelled")
                self._transition(phase="error", error=CANCELLED_MESSAGE)
            raise
        except GatewayError as exc:
            if self._is_stale(token, key):
                return self._state
            if is_recoverable(exc):
                logger.warning(
                    f"Directions {exc.kind} failure: {exc.message}. "
                    f"Using demo routes (dataset {DEMO_DATASET_VERSION})."
                )
                self._succeed(request, tuple(self.fallback_provider()), cached=False, source="demo")
            else:
                if isinstance(exc, MalformedResponseError):
                    logger.error(f"Malformed directions response for {key}: {exc.message}")
                else:
                    logger.info(f"Directions provider refused request {key}: {exc.message}")
                self._transition(phase="error", error=exc.message)
            return self._state
        except Exception as exc:
            if self._is_stale(token, key):
                return self._state
            logger.exception(f"Unexpected error evaluating routes for {key}: {exc}")
            self._transition(phase="error", error=GENERIC_FAILURE_MESSAGE)
            return self._state

        if self._is_stale(token, key):
            return self._state
        self._succeed(request, routes, cached=False, source="live")
        return self._state
    async def evaluate_simple(
        self,
        origin: LatLng,
        destination: LatLng,
        options: RouteOptions | None = None,
    ) -> EvaluationState:
        return await self.evaluate(RouteRequest(origin=origin, destination=destination, options=options or RouteOptions()))

    async def evaluate_stress_optimized(self, origin: LatLng, destination: LatLng) -> EvaluationState:
        """Ask for every driving alternative with live traffic so all of them get classified."""
        options = RouteOptions(
            mode="driving",
            alternatives=True,
            avoid_highways=False,
            avoid_tolls=False,
            units="metric",
            departure_time=datetime.now(timezone.utc).replace(microsecond=0),
        )
        return await self.evaluate(RouteRequest(origin=origin, destination=destination, options=options))

    async def _fetch_and_enhance(self, request: RouteRequest, key: str) -> tuple[EnhancedRoute, ...]:
        raw_routes = await self.gateway.fetch_routes(request)
        routes = tuple(enhance(raw_routes, self.thresholds))
        self.cache.put(key, CacheEntry(routes=routes, cached_at=self.cache.clock(), source="live"))
        logger.info(f"Fetched and classified {len(routes)} routes for {key}")
        return routes

    def _succeed(self, request: RouteRequest, routes: tuple[EnhancedRoute, ...], *, cached: bool, source: str) -> None:
        self._routes_request = request
        self._transition(phase="success", routes=routes, error=None, cached=cached, source=source)

    def _is_stale(self, token: int, key: str) -> bool:
        if token != self._sequence:
            logger.debug(f"Discarding superseded result for {key} (call {token}, current {self._sequence})")
            return True
        return False

    def _transition(self, **changes) -> None:
        self._set_state(replace(self._state, **changes))

    def _set_state(self, state: EvaluationState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as exc:
                logger.exception(f"Route state listener failed: {exc}")


class EvaluatorRegistry:
    """One evaluator per caller session, all sharing a cache and gateway.

    Sessions are kept in least-recently-used order; once ``max_sessions`` is
    reached the least recently used evaluator is discarded.
    """

    def __init__(
        self,
        gateway: DirectionsGateway | None = None,
        cache: ResponseCache | None = None,
        max_sessions: int | None = None,
    ) -> None:
        self.gateway = gateway if gateway is not None else DirectionsGateway()
        self.cache = cache if cache is not None else ResponseCache()
        self.max_sessions = max_sessions if max_sessions is not None else settings.route_session_limit
        if self.max_sessions < 1:
            raise ValueError("Session limit must be at least 1.")
        self._evaluators: OrderedDict[str, RouteEvaluator] = OrderedDict()

    def get(self, session_id: str) -> RouteEvaluator:
        evaluator = self.peek(session_id)
        if evaluator is None:
            while len(self._evaluators) >= self.max_sessions:
                oldest = next(iter(self._evaluators))
                logger.info(f"Session limit {self.max_sessions} reached, evicting {oldest}")
                self.discard(oldest)
            evaluator = RouteEvaluator(gateway=self.gateway, cache=self.cache)
            self._evaluators[session_id] = evaluator
        return evaluator

    def peek(self, session_id: str) -> RouteEvaluator | None:
        evaluator = self._evaluators.get(session_id)
        if evaluator is not None:
            self._evaluators.move_to_end(session_id)
        return evaluator

    def discard(self, session_id: str) -> bool:
        return self._evaluators.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._evaluators)
