"""
Walking directions (Mapbox Directions API).

The map view draws a walking route from the user's position to the chosen bin.
Routing itself is the provider's job; we only forward the two points and keep the
first route's distance, duration and GeoJSON line.
"""

from __future__ import annotations

import logging

import httpx

from recycleright.config.settings import Settings
from recycleright.core.geo import GeoPoint
from recycleright.core.http import get_json
from recycleright.domain.models import WalkingRoute

logger = logging.getLogger(__name__)


class DirectionsUnavailableError(RuntimeError):
    """No route could be obtained (missing token, provider error, or no route found)."""


class MapboxDirectionsClient:
    def __init__(self, settings: Settings):
        self._settings = settings

    def walking_route(self, start: GeoPoint, end: GeoPoint) -> WalkingRoute:
        token = self._settings.directions.access_token
        if not token:
            raise DirectionsUnavailableError("MAPBOX_ACCESS_TOKEN is not configured")

        url = f"{self._settings.directions.base_url}/{start.lon},{start.lat};{end.lon},{end.lat}"
        params = {"steps": "true", "geometries": "geojson", "access_token": token}
        try:
            payload = get_json(url, params=params, timeout_seconds=self._settings.app.http_timeout_seconds)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Mapbox directions request failed: %s", e)
            raise DirectionsUnavailableError(f"Directions request failed: {e}") from e

        routes = payload.get("routes") if isinstance(payload, dict) else None
        if not routes:
            raise DirectionsUnavailableError("No route found between the specified points")

        route = routes[0] if isinstance(routes, list) else None
        if not isinstance(route, dict):
            raise DirectionsUnavailableError("Unexpected directions payload: route is not an object")
        return WalkingRoute(
            distance_m=float(route.get("distance") or 0.0),
            duration_s=float(route.get("duration") or 0.0),
            coordinates=(route.get("geometry") or {}).get("coordinates") or [],
        )
