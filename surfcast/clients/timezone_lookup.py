"""Coordinate to IANA timezone lookup.

Best-effort: any failure falls back to "UTC" so a forecast can always be
requested.
"""

import logging
from functools import lru_cache
from zoneinfo import ZoneInfo

from timezonefinder import TimezoneFinder


logger = logging.getLogger(__name__)

FALLBACK_TIMEZONE = "UTC"


@lru_cache()
def _finder() -> TimezoneFinder:
    return TimezoneFinder()


def timezone_for(lat: float, lon: float) -> str:
    """Get the timezone name for a coordinate.

    Args:
        lat: Latitude
        lon: Longitude

    Returns:
        IANA timezone name, or "UTC" if it cannot be determined
    """
    try:
        name = _finder().timezone_at(lng=lon, lat=lat)
        if not name:
            logger.debug(f"No timezone found for {lat},{lon}; using {FALLBACK_TIMEZONE}")
            return FALLBACK_TIMEZONE
        ZoneInfo(name)  # must be loadable for local-hour filtering
        return name
    except Exception as e:
        logger.debug(f"Timezone lookup failed for {lat},{lon}: {e}")
        return FALLBACK_TIMEZONE
