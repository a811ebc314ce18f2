#!/usr/bin/env python3
"""Manual check that the Google Maps key works end to end."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from courier_maps.config import settings
from courier_maps.services.errors import MapsError
from courier_maps.services.routing.maps_client import check_health
from courier_maps.services.routing.service import MapsService


def main():
    print("=" * 60)
    print("Google Maps Connection Test")
    print("=" * 60)
    print()

    print("1. Checking configuration...")
    if not settings.google_maps_api_key:
        print("   [ERROR] Google Maps API key is not configured")
        print("   Please set COURIER_GOOGLE_MAPS_API_KEY in your .env file")
        return 1
    print(f"   [OK] Base URL: {settings.maps_base_url}")
    print(f"   [OK] Region qualifier: {settings.region_qualifier}")
    print()

    print("2. Testing geocoding health check...")
    if not check_health():
        print("   [ERROR] Google Maps did not answer the geocoding probe")
        return 1
    print("   [OK] Google Maps is reachable and the key is accepted")
    print()

    print("3. Testing a route between two points in Cochabamba...")
    service = MapsService()
    try:
        result = service.compute_route("-17.3935,-66.1570", "-17.3711,-66.1449")
    except MapsError as e:
        print(f"   [ERROR] {e.code.value}: {e.message}")
        return 1
    print(f"   [OK] {result.distance_text} / {result.duration_text} via {result.source.value}")
    print(f"   [OK] {result.origin_address} -> {result.destination_address}")
    print()

    print("=" * 60)
    print("[SUCCESS] Google Maps is connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
