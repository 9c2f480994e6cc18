import asyncio

import pytest

from zenroute.models.domain import EvaluationState, LatLng, RawRoute, RouteOptions, RouteRequest, TextValue
from zenroute.services.routes.cache import ResponseCache
from zenroute.services.routes.errors import (
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    ProviderError,
)
from zenroute.services.routes.fallback import demo_routes
from zenroute.services.routes.service import (
    CANCELLED_MESSAGE,
    GENERIC_FAILURE_MESSAGE,
    EvaluatorRegistry,
    RouteEvaluator,
)
from zenroute.services.routes.stress import TrafficThresholds

ORIGIN = LatLng(37.7749, -122.4194)


def _request(dest_lat: float = 37.7849, dest_lng: float = -122.4094, **options) -> RouteRequest:
    return RouteRequest(origin=ORIGIN, destination=LatLng(dest_lat, dest_lng), options=RouteOptions(**options))


def _raw_route(summary: str, duration: int = 600, traffic: int | None = None) -> RawRoute:
    return RawRoute(
        summary=summary,
        distance=TextValue("5.0 km", 5000),
        duration=TextValue(f"{duration // 60} mins", duration),
        duration_in_traffic=TextValue(f"{traffic // 60} mins", traffic) if traffic is not None else None,
        overview_polyline=f"polyline-{summary}",
    )


class StubGateway:
    """Returns a fixed outcome per destination, optionally waiting on a gate."""

    def __init__(self, outcomes: dict | None = None) -> None:
        self.outcomes = outcomes or {}
        self.gates: dict[LatLng, asyncio.Event] = {}
        self.calls: list[RouteRequest] = []

    def hold(self, request: RouteRequest) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[request.destination] = gate
        return gate

    async def fetch_routes(self, request: RouteRequest):
        self.calls.append(request)
        gate = self.gates.get(request.destination)
        if gate is not None:
            await gate.wait()
        outcome = self.outcomes[request.destination]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _evaluator(gateway: StubGateway, cache: ResponseCache | None = None) -> RouteEvaluator:
    return RouteEvaluator(
        gateway=gateway,
        cache=cache if cache is not None else ResponseCache(ttl_seconds=300),
        thresholds=TrafficThresholds(moderate_ratio=1.2, heavy_ratio=1.5),
    )


@pytest.mark.asyncio
async def test_live_fetch_then_cache_hit():
    request = _request()
    gateway = StubGateway({request.destination: [_raw_route("Market St", traffic=1080), _raw_route("Mission St")]})
    evaluator = _evaluator(gateway)

    first = await evaluator.evaluate(request)
    assert first.phase == "success"
    assert first.cached is False
    assert first.source == "live"
    assert [route.id for route in first.routes] == ["route-0", "route-1"]
    assert first.routes[0].stress_level == "high"

    second = await evaluator.evaluate(request)
    assert second.phase == "success"
    assert second.cached is True
    assert second.routes == first.routes
    assert len(gateway.calls) == 1


@pytest.mark.asyncio
async def test_expired_cache_entry_triggers_new_fetch():
    request = _request()
    now = [1000.0]
    cache = ResponseCache(ttl_seconds=60, clock=lambda: now[0])
    gateway = StubGateway({request.destination: [_raw_route("Market St")]})
    evaluator = _evaluator(gateway, cache)

    await evaluator.evaluate(request)
    now[0] += 61
    state = await evaluator.evaluate(request)

    assert state.cached is False
    assert len(gateway.calls) == 2


@pytest.mark.asyncio
async def test_concurrent_identical_requests_hit_gateway_once():
    request = _request()
    gateway = StubGateway({request.destination: [_raw_route("Market St")]})
    gate = gateway.hold(request)
    cache = ResponseCache(ttl_seconds=300)
    evaluator = _evaluator(gateway, cache)
    other_session = _evaluator(gateway, cache)

    tasks = [
        asyncio.create_task(evaluator.evaluate(request)),
        asyncio.create_task(evaluator.evaluate(_request())),
        asyncio.create_task(other_session.evaluate(request)),
    ]
    await asyncio.sleep(0)
    gate.set()
    await asyncio.gather(*tasks)

    assert len(gateway.calls) == 1
    assert evaluator.current_state().phase == "success"
    assert other_session.current_state().routes == evaluator.current_state().routes


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [NetworkError("Unable to reach the directions service"), ConfigurationError("API key missing")],
)
async def test_recoverable_failure_falls_back_to_demo_routes(error):
    request = _request()
    evaluator = _evaluator(StubGateway({request.destination: error}))

    state = await evaluator.evaluate(request)

    assert state.phase == "success"
    assert state.cached is False
    assert state.source == "demo"
    assert state.error is None
    assert state.routes == demo_routes()
    assert {route.stress_level for route in state.routes} == {"low", "medium", "high"}
    assert evaluator.cache.get(state.fingerprint) is None


@pytest.mark.asyncio
async def test_provider_error_is_surfaced_and_keeps_previous_routes():
    good = _request()
    bad = _request(dest_lat=0.0, dest_lng=0.0)
    gateway = StubGateway(
        {
            good.destination: [_raw_route("Market St")],
            bad.destination: ProviderError("ZERO_RESULTS", provider_status="ZERO_RESULTS"),
        }
    )
    evaluator = _evaluator(gateway)

    previous = await evaluator.evaluate(good)
    state = await evaluator.evaluate(bad)

    assert state.phase == "error"
    assert state.error == "ZERO_RESULTS"
    assert state.routes == previous.routes


@pytest.mark.asyncio
async def test_malformed_response_is_surfaced():
    request = _request()
    evaluator = _evaluator(StubGateway({request.destination: MalformedResponseError("Route 0 is malformed")}))

    state = await evaluator.evaluate(request)

    assert state.phase == "error"
    assert state.error == "Route 0 is malformed"
    assert state.routes == ()


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_generic_error_state():
    request = _request()
    evaluator = _evaluator(StubGateway({request.destination: RuntimeError("boom")}))

    state = await evaluator.evaluate(request)

    assert state.phase == "error"
    assert state.error == GENERIC_FAILURE_MESSAGE


@pytest.mark.asyncio
async def test_newer_request_wins_when_older_response_arrives_late():
    request_a = _request(dest_lat=37.80, dest_lng=-122.41)
    request_b = _request(dest_lat=37.70, dest_lng=-122.45)
    gateway = StubGateway(
        {
            request_a.destination: [_raw_route("Route A")],
            request_b.destination: [_raw_route("Route B")],
        }
    )
    gate_a = gateway.hold(request_a)
    gate_b = gateway.hold(request_b)
    evaluator = _evaluator(gateway)

    task_a = asyncio.create_task(evaluator.evaluate(request_a))
    await asyncio.sleep(0)
    task_b = asyncio.create_task(evaluator.evaluate(request_b))
    await asyncio.sleep(0)

    gate_b.set()
    await task_b
    gate_a.set()
    await task_a

    state = evaluator.current_state()
    assert state.phase == "success"
    assert [route.summary for route in state.routes] == ["Route B"]


@pytest.mark.asyncio
async def test_late_failure_of_superseded_request_is_ignored():
    request_a = _request(dest_lat=37.80, dest_lng=-122.41)
    request_b = _request(dest_lat=37.70, dest_lng=-122.45)
    gateway = StubGateway(
        {
            request_a.destination: ProviderError("NOT_FOUND"),
            request_b.destination: [_raw_route("Route B")],
        }
    )
    gate_a = gateway.hold(request_a)
    evaluator = _evaluator(gateway)

    task_a = asyncio.create_task(evaluator.evaluate(request_a))
    await asyncio.sleep(0)
    await evaluator.evaluate(request_b)
    gate_a.set()
    await task_a

    state = evaluator.current_state()
    assert state.phase == "success"
    assert state.error is None


@pytest.mark.asyncio
async def test_subscribers_see_every_transition():
    request = _request()
    evaluator = _evaluator(StubGateway({request.destination: [_raw_route("Market St")]}))
    seen: list[EvaluationState] = []
    unsubscribe = evaluator.subscribe(seen.append)

    await evaluator.evaluate(request)
    await evaluator.evaluate(request)
    unsubscribe()
    evaluator.reset()

    assert [state.phase for state in seen] == ["loading", "success", "loading", "success"]
    assert [state.cached for state in seen if state.phase == "success"] == [False, True]


@pytest.mark.asyncio
async def test_clear_error_and_reset():
    request = _request()
    evaluator = _evaluator(StubGateway({request.destination: ProviderError("INVALID_REQUEST")}))

    await evaluator.evaluate(request)
    evaluator.clear_error()
    cleared = evaluator.current_state()
    assert cleared.error is None
    assert cleared.phase == "error"

    evaluator.reset()
    assert evaluator.current_state() == EvaluationState()


@pytest.mark.asyncio
async def test_reset_discards_in_flight_result():
    request = _request()
    gateway = StubGateway({request.destination: [_raw_route("Market St")]})
    gate = gateway.hold(request)
    evaluator = _evaluator(gateway)

    task = asyncio.create_task(evaluator.evaluate(request))
    await asyncio.sleep(0)
    evaluator.reset()
    gate.set()
    await task

    assert evaluator.current_state().phase == "idle"
    assert evaluator.current_state().routes == ()


@pytest.mark.asyncio
async def test_stress_optimized_request_asks_for_driving_alternatives():
    gateway = StubGateway({LatLng(37.7849, -122.4094): [_raw_route("Market St")]})
    evaluator = _evaluator(gateway)

    await evaluator.evaluate_stress_optimized(ORIGIN, LatLng(37.7849, -122.4094))

    options = gateway.calls[0].options
    assert options.alternatives is True
    assert options.mode == "driving"
    assert options.departure_time is not None


def test_registry_shares_cache_between_sessions():
    registry = EvaluatorRegistry(gateway=StubGateway(), cache=ResponseCache(ttl_seconds=60))

    first = registry.get("alice")
    assert registry.get("alice") is first
    assert registry.get("bob") is not first
    assert registry.get("bob").cache is first.cache
    assert registry.peek("carol") is None
    assert len(registry) == 2


def test_registry_evicts_least_recently_used_session():
    registry = EvaluatorRegistry(gateway=StubGateway(), cache=ResponseCache(ttl_seconds=60), max_sessions=2)

    alice = registry.get("alice")
    registry.get("bob")
    registry.peek("alice")
    registry.get("carol")

    assert len(registry) == 2
    assert registry.peek("bob") is None
    assert registry.peek("alice") is alice
    assert registry.discard("carol") is True
    assert registry.discard("carol") is False
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_cancelled_leader_does_not_strand_joined_evaluator():
    request = _request()
    gateway = StubGateway({request.destination: [_raw_route("Market St")]})
    gate = gateway.hold(request)
    cache = ResponseCache(ttl_seconds=300)
    leader = _evaluator(gateway, cache)
    follower = _evaluator(gateway, cache)

    leader_task = asyncio.create_task(leader.evaluate(request))
    await asyncio.sleep(0)
    follower_task = asyncio.create_task(follower.evaluate(request))
    await asyncio.sleep(0)

    leader_task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await leader_task
    gate.set()
    state = await follower_task

    assert state.phase == "success"
    assert [route.summary for route in state.routes] == ["Market St"]
    assert leader.current_state().phase == "error"
    assert leader.current_state().error == CANCELLED_MESSAGE
    assert len(gateway.calls) == 1
    assert cache.get(state.fingerprint) is not None


@pytest.mark.asyncio
async def test_evaluate_simple_builds_request_with_default_options():
    destination = LatLng(37.7849, -122.4094)
    gateway = StubGateway({destination: [_raw_route("Market St")]})
    evaluator = _evaluator(gateway)

    state = await evaluator.evaluate_simple(ORIGIN, destination)

    assert state.phase == "success"
    assert gateway.calls[0] == RouteRequest(origin=ORIGIN, destination=destination, options=RouteOptions())
    assert evaluator.routes_request() == gateway.calls[0]

    await evaluator.evaluate_simple(ORIGIN, destination, RouteOptions(mode="walking"))
    assert gateway.calls[-1].options.mode == "walking"


@pytest.mark.asyncio
async def test_routes_request_follows_routes_in_state():
    good = _request()
    bad = _request(dest_lat=0.0, dest_lng=0.0)
    gateway = StubGateway(
        {
            good.destination: [_raw_route("Market St")],
            bad.destination: ProviderError("ZERO_RESULTS"),
        }
    )
    evaluator = _evaluator(gateway)

    await evaluator.evaluate(good)
    await evaluator.evaluate(bad)
    assert evaluator.routes_request() == good

    evaluator.reset()
    assert evaluator.routes_request() is None
