"""Road distance between two addresses (Google Distance Matrix)."""

import logging

import httpx

from freightmatch.core.config import settings

logger = logging.getLogger(__name__)

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"


def calculate_distance_km(origin: str | None, destination: str | None) -> int | None:
    """Driving distance in whole kilometres, or None when it can't be computed."""
    if not settings.GOOGLE_MAPS_API_KEY:
        logger.info("Distance not computed: GOOGLE_MAPS_API_KEY not configured")
        return None
    if not origin or not destination:
        return None

    params = {
        "origins": origin,
        "destinations": destination,
        "mode": "driving",
        "region": "ma",
        "language": "fr",
        "key": settings.GOOGLE_MAPS_API_KEY,
    }
    try:
        response = httpx.get(DISTANCE_MATRIX_URL, params=params, timeout=settings.PROVIDER_TIMEOUT_SECONDS)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Distance lookup failed: %s", exc)
        return None

    if data.get("status") != "OK":
        logger.warning("Distance API error: %s", data.get("error_message") or data.get("status"))
        return None

    try:
        element = data["rows"][0]["elements"][0]
    except (KeyError, IndexError):
        return None
    if element.get("status") != "OK":
        return None
    meters = (element.get("distance") or {}).get("value")
    if not meters:
        return None
    return round(meters / 1000)
