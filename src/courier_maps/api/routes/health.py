"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_maps_service():
    """Lazy import to avoid startup failures."""
    from ...services.routing.service import get_maps_service
    return get_maps_service()


@router.get("/health/maps", status_code=status.HTTP_200_OK)
def health_maps() -> dict:
    """Check the Google Maps key and report cache usage."""
    from ...services.routing.maps_client import check_health

    try:
        service = _get_maps_service()
        return {
            "service": "google_maps",
            "configured": service.client.configured,
            "healthy": check_health(service.client),
            "caches": service.cache_stats(),
        }
    except Exception as e:
        return {"service": "google_maps", "healthy": False, "error": str(e)}
