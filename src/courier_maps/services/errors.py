"""Error taxonomy shared by the resolver, the route calculator and the API layer."""

from __future__ import annotations

from enum import Enum


class MapsErrorCode(str, Enum):
    NO_CONNECTIVITY = "NO_CONNECTIVITY"
    NO_ROUTE_FOUND = "NO_ROUTE_FOUND"
    ENDPOINT_NOT_FOUND = "ENDPOINT_NOT_FOUND"
    UNRESOLVABLE_REFERENCE = "UNRESOLVABLE_REFERENCE"
    UPSTREAM_INCONSISTENT = "UPSTREAM_INCONSISTENT"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    CANCELLED = "CANCELLED"


class MapsError(Exception):
    """User-facing failure carrying one taxonomy code and a readable message."""

    def __init__(self, code: MapsErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"MapsError({self.code.value}, {self.message!r})"


class ProviderUnavailableError(ConnectionError):
    """The provider could not be reached (DNS, refused connection, timeout)."""

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class ProviderResponseError(RuntimeError):
    """The provider answered with an HTTP error or a body that is not JSON."""


class CallBudgetExceeded(RuntimeError):
    """A request tried to issue more external calls than its budget allows."""


class ResolutionCancelled(RuntimeError):
    """The caller abandoned the request."""


def no_connectivity() -> MapsError:
    return MapsError(
        MapsErrorCode.NO_CONNECTIVITY,
        "Cannot reach Google Maps. Check the internet connection and try again.",
    )
