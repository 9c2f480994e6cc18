"""Route evaluation pipeline."""

from .cache import ResponseCache
from .directions_client import DirectionsGateway
from .enhancer import enhance
from .errors import (
    ConfigurationError,
    GatewayError,
    MalformedResponseError,
    NetworkError,
    ProviderError,
    is_recoverable,
)
from .fallback import DEMO_DATASET_VERSION, demo_routes
from .fingerprint import fingerprint
from .service import EvaluatorRegistry, RouteEvaluator
from .stress import TrafficThresholds, classify, recommend_therapy, traffic_level

__all__ = [
    "ResponseCache",
    "DirectionsGateway",
    "enhance",
    "GatewayError",
    "ConfigurationError",
    "NetworkError",
    "ProviderError",
    "MalformedResponseError",
    "is_recoverable",
    "DEMO_DATASET_VERSION",
    "demo_routes",
    "fingerprint",
    "RouteEvaluator",
    "EvaluatorRegistry",
    "TrafficThresholds",
    "classify",
    "recommend_therapy",
    "traffic_level",
]
