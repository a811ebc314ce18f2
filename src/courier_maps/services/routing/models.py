"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RouteSource(str, Enum):
    ROUTING = "Routing"
    MATRIX = "Matrix"


@dataclass(frozen=True, slots=True)
class RouteResult:
    distance_meters: int
    distance_text: str
    duration_seconds: int
    duration_text: str
    source: RouteSource
    origin_address: str
    destination_address: str


class RouteState(str, Enum):
    START = "Start"
    TRY_ROUTING = "TryRouting"
    TRY_MATRIX = "TryMatrix"
    RETRY_WITH_REEXPANDED_LINKS = "RetryWithReexpandedLinks"
    RETRY_WITH_GEOCODING = "RetryWithGeocoding"
    SUCCESS = "Success"
    FAILED = "Failed"


class MatrixOutcomeKind(str, Enum):
    OK = "ok"
    NO_PATH = "no_path"
    NOT_FOUND = "not_found"
    INCONSISTENT = "inconsistent"


@dataclass(frozen=True, slots=True)
class MatrixOutcome:
    kind: MatrixOutcomeKind
    result: Optional[RouteResult] = None
    element_status: Optional[str] = None
    detail: str = ""
