"""Route evaluation endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict
from functools import lru_cache
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...models.domain import RouteHistoryRecord
from ...persistence.route_history import (
    get_favorite_routes,
    get_route_history,
    route_history_from_enhanced,
    save_route_history,
)
from ...schemas.routes import (
    DemoRoutesResponse,
    EnhancedRouteModel,
    EvaluateRoutesRequest,
    EvaluationStateModel,
    RouteHistoryCreate,
    RouteHistoryModel,
    RouteJourneyCreate,
    SessionRequest,
)
from ...services.routes.fallback import DEMO_DATASET_VERSION, demo_routes
from ...services.routes.service import EvaluatorRegistry, RouteEvaluator

router = APIRouter(prefix="/routes", tags=["routes"])


@lru_cache()
def get_registry() -> EvaluatorRegistry:
    """Process-wide evaluator registry sharing one cache and one gateway."""
    return EvaluatorRegistry()


def _existing_evaluator(registry: EvaluatorRegistry, session_id: str) -> RouteEvaluator:
    evaluator = registry.peek(session_id)
    if evaluator is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown session '{session_id}'")
    return evaluator


def _save(record: RouteHistoryRecord) -> RouteHistoryModel:
    try:
        saved = save_route_history(record)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error saving route history: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save route history: {str(exc)}",
        ) from exc
    return RouteHistoryModel(**asdict(saved))


@router.post("/evaluate", response_model=EvaluationStateModel, status_code=status.HTTP_200_OK)
async def evaluate(
    payload: EvaluateRoutesRequest,
    registry: EvaluatorRegistry = Depends(get_registry),
) -> EvaluationStateModel:
    evaluator = registry.get(payload.session_id)
    state = await evaluator.evaluate(payload.request.to_domain())
    return EvaluationStateModel.from_domain(payload.session_id, state)


@router.get("/state", response_model=EvaluationStateModel, status_code=status.HTTP_200_OK)
def current_state(
    session_id: str = Query(default="default", min_length=1),
    registry: EvaluatorRegistry = Depends(get_registry),
) -> EvaluationStateModel:
    evaluator = _existing_evaluator(registry, session_id)
    return EvaluationStateModel.from_domain(session_id, evaluator.current_state())


@router.post("/clear-error", response_model=EvaluationStateModel, status_code=status.HTTP_200_OK)
def clear_error(
    payload: SessionRequest,
    registry: EvaluatorRegistry = Depends(get_registry),
) -> EvaluationStateModel:
    evaluator = _existing_evaluator(registry, payload.session_id)
    evaluator.clear_error()
    return EvaluationStateModel.from_domain(payload.session_id, evaluator.current_state())


@router.post("/reset", response_model=EvaluationStateModel, status_code=status.HTTP_200_OK)
def reset(
    payload: SessionRequest,
    registry: EvaluatorRegistry = Depends(get_registry),
) -> EvaluationStateModel:
    evaluator = _existing_evaluator(registry, payload.session_id)
    evaluator.reset()
    return EvaluationStateModel.from_domain(payload.session_id, evaluator.current_state())


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def end_session(session_id: str, registry: EvaluatorRegistry = Depends(get_registry)) -> None:
    if not registry.discard(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown session '{session_id}'")


@router.get("/demo", response_model=DemoRoutesResponse, status_code=status.HTTP_200_OK)
def demo() -> DemoRoutesResponse:
    return DemoRoutesResponse(
        version=DEMO_DATASET_VERSION,
        routes=[EnhancedRouteModel.from_domain(route) for route in demo_routes()],
    )


@router.post("/history", response_model=RouteHistoryModel, status_code=status.HTTP_201_CREATED)
def create_history(payload: RouteHistoryCreate) -> RouteHistoryModel:
    return _save(payload.to_domain())


@router.post("/history/from-route", response_model=RouteHistoryModel, status_code=status.HTTP_201_CREATED)
def create_history_from_route(
    payload: RouteJourneyCreate,
    registry: EvaluatorRegistry = Depends(get_registry),
) -> RouteHistoryModel:
    """Save a journey taken along one of the routes the session currently holds."""
    evaluator = _existing_evaluator(registry, payload.session_id)
    request = evaluator.routes_request()
    route = next((item for item in evaluator.current_state().routes if item.id == payload.route_id), None)
    if request is None or route is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Route '{payload.route_id}' not found in session '{payload.session_id}'",
        )
    record = route_history_from_enhanced(
        route,
        request,
        payload.user_id,
        stress_level_before=payload.stress_level_before,
        stress_level_after=payload.stress_level_after,
        rating=payload.rating,
        notes=payload.notes,
    )
    return _save(record)


@router.get("/history", response_model=List[RouteHistoryModel], status_code=status.HTTP_200_OK)
def list_history(
    user_id: str = Query(..., min_length=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> List[RouteHistoryModel]:
    try:
        records = get_route_history(user_id, limit=limit)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error loading route history: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to load route history: {str(exc)}",
        ) from exc
    return [RouteHistoryModel(**asdict(record)) for record in records]


@router.get("/history/favorites", response_model=List[RouteHistoryModel], status_code=status.HTTP_200_OK)
def list_favorites(user_id: str = Query(..., min_length=1)) -> List[RouteHistoryModel]:
    try:
        records = get_favorite_routes(user_id)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error loading favorite routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to load favorite routes: {str(exc)}",
        ) from exc
    return [RouteHistoryModel(**asdict(record)) for record in records]
