"""API clients for forecast data sources."""

from surfcast.clients.open_meteo_client import MarinePoint, OpenMeteoClient, OpenMeteoError
from surfcast.clients.timezone_lookup import timezone_for

__all__ = [
    "MarinePoint",
    "OpenMeteoClient",
    "OpenMeteoError",
    "timezone_for",
]
