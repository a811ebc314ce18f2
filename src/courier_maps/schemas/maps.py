"""Maps request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CoordinatesModel(CamelModel):
    lat: float
    lng: float


class ReferenceValidationResponse(CamelModel):
    valid: bool
    kind: str
    coordinates: Optional[str] = Field(default=None, description="Resolved point as \"lat,lng\"")
    reason: Optional[str] = None
    resolved_via: Optional[str] = None


class DistanceModel(CamelModel):
    text: str
    value_meters: int


class DurationModel(CamelModel):
    text: str
    value_seconds: int


class RouteResponse(CamelModel):
    status: str = "OK"
    distance: DistanceModel
    duration: DurationModel
    origin_address: str
    destination_address: str
    source: str


class MapsErrorResponse(CamelModel):
    status: str = Field(..., description="Error code, e.g. NO_ROUTE_FOUND or NO_CONNECTIVITY.")
    message: str


class DistanceRequest(CamelModel):
    origin: str = Field(..., min_length=1, description="Coordinates, map link or address of the pickup.")
    destination: str = Field(..., min_length=1, description="Coordinates, map link or address of the drop-off.")


class DistanceResponse(CamelModel):
    distance_km: float
    distance_text: str
    duration_seconds: int
    duration_text: str
    origin_address: str
    destination_address: str
    source: str


class CoordinatesRequest(CamelModel):
    references: List[str] = Field(default_factory=list, max_length=200)


class CoordinatesResponse(CamelModel):
    coordinates: List[Optional[CoordinatesModel]]
