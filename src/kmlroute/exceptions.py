"""Error types raised by the routing pipeline."""

from __future__ import annotations


class RoutingInputError(ValueError):
    """Raised when a solve/route call does not have enough usable points."""


class ConfigError(ValueError):
    """Raised when a TSP configuration cannot be repaired."""


class RemoteServiceError(ConnectionError):
    """Raised when the routing service fails or answers with a non-Ok code."""

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
