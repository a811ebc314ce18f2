"""Location validation and route endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from ...schemas.maps import (
    CoordinatesRequest,
    CoordinatesResponse,
    DistanceRequest,
    DistanceResponse,
    MapsErrorResponse,
    ReferenceValidationResponse,
    RouteResponse,
)
from ...services.errors import MapsError, MapsErrorCode
from ...services.outputs.route_formatter import (
    coordinates_to_json,
    route_result_to_distance_json,
    route_result_to_json,
)
from ...services.routing.service import get_maps_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maps", tags=["maps"])

UNPROCESSABLE_ENTITY = 422

HTTP_STATUS_BY_CODE = {
    MapsErrorCode.UNRESOLVABLE_REFERENCE: UNPROCESSABLE_ENTITY,
    MapsErrorCode.ENDPOINT_NOT_FOUND: UNPROCESSABLE_ENTITY,
    MapsErrorCode.NO_ROUTE_FOUND: UNPROCESSABLE_ENTITY,
    MapsErrorCode.UPSTREAM_ERROR: status.HTTP_502_BAD_GATEWAY,
    MapsErrorCode.UPSTREAM_INCONSISTENT: status.HTTP_502_BAD_GATEWAY,
    MapsErrorCode.NO_CONNECTIVITY: status.HTTP_503_SERVICE_UNAVAILABLE,
    # Client closed request.
    MapsErrorCode.CANCELLED: 499,
}

_ERROR_RESPONSES = {
    UNPROCESSABLE_ENTITY: {"model": MapsErrorResponse},
    status.HTTP_502_BAD_GATEWAY: {"model": MapsErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": MapsErrorResponse},
}


def _error_response(exc: MapsError) -> JSONResponse:
    http_status = HTTP_STATUS_BY_CODE.get(exc.code, status.HTTP_502_BAD_GATEWAY)
    logger.info(f"Maps request failed with {exc.code.value}: {exc.message}")
    body = MapsErrorResponse(status=exc.code.value, message=exc.message)
    return JSONResponse(status_code=http_status, content=body.model_dump(by_alias=True))


@router.get("/validate", response_model=ReferenceValidationResponse, status_code=status.HTTP_200_OK)
def validate_reference(
    reference: str = Query(..., description="Coordinates, Google Maps link or address to check"),
):
    """Check whether a pasted location can be routed, resolving it on the way."""
    try:
        validation = get_maps_service().validate_reference(reference)
    except MapsError as exc:
        return _error_response(exc)
    return ReferenceValidationResponse(
        valid=validation.valid,
        kind=validation.kind.value,
        coordinates=validation.coordinates.as_query() if validation.coordinates is not None else None,
        reason=validation.reason,
        resolved_via=validation.resolved_via,
    )


@router.get(
    "/route",
    response_model=RouteResponse,
    status_code=status.HTTP_200_OK,
    responses=_ERROR_RESPONSES,
)
def route(
    origin: str = Query(..., min_length=1, description="Pickup reference"),
    destination: str = Query(..., min_length=1, description="Drop-off reference"),
):
    try:
        result = get_maps_service().compute_route(origin, destination)
    except MapsError as exc:
        return _error_response(exc)
    return RouteResponse.model_validate(route_result_to_json(result))


@router.post(
    "/distance",
    response_model=DistanceResponse,
    status_code=status.HTTP_200_OK,
    responses=_ERROR_RESPONSES,
)
def distance(payload: DistanceRequest):
    """Driving distance in kilometres between two references."""
    try:
        result = get_maps_service().compute_route(payload.origin, payload.destination)
    except MapsError as exc:
        return _error_response(exc)
    return DistanceResponse.model_validate(route_result_to_distance_json(result))


@router.post("/coordinates", response_model=CoordinatesResponse, status_code=status.HTTP_200_OK)
def coordinates(payload: CoordinatesRequest) -> CoordinatesResponse:
    """Batch conversion of references to points for map overlays."""
    points = get_maps_service().urls_to_coordinates(payload.references)
    return CoordinatesResponse(coordinates=[coordinates_to_json(point) for point in points])
