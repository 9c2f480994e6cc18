"""Error taxonomy for the directions gateway."""

from __future__ import annotations

from typing import Literal, Optional

ErrorKind = Literal["configuration", "network", "provider", "malformed_response"]


class GatewayError(Exception):
    """Base class for every failure raised by the directions gateway."""

    kind: ErrorKind = "provider"
    recoverable: bool = False

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        provider_status: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.provider_status = provider_status

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, status_code={self.status_code!r}, "
            f"provider_status={self.provider_status!r})"
        )


class ConfigurationError(GatewayError):
    """Provider credentials or environment missing or rejected."""

    kind = "configuration"
    recoverable = True


class NetworkError(GatewayError):
    """Connection failed, timed out, DNS failure, or the provider is down."""

    kind = "network"
    recoverable = True


class ProviderError(GatewayError):
    """Provider reachable but returned a semantic failure (e.g. ZERO_RESULTS)."""

    kind = "provider"


class MalformedResponseError(GatewayError):
    """Response received but not parseable into routes."""

    kind = "malformed_response"


def is_recoverable(error: BaseException) -> bool:
    """Return True when the failure should silently select the demo routes."""
    return isinstance(error, GatewayError) and error.recoverable
