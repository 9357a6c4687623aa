"""Open-Meteo client for hourly marine and wind forecasts.

Waves, sea surface temperature and sea level come from the Marine API;
10m wind comes from the Weather API. The two are merged by timestamp.
No API key is required.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

import pandas as pd
import requests


logger = logging.getLogger(__name__)

MARINE_URL = "https://marine-api.open-meteo.com/v1/marine"
WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
CACHE_TTL_SECONDS = 1800  # 30 minutes

MARINE_VARIABLES = [
    "wave_height",
    "wave_direction",
    "wave_period",
    "swell_wave_height",
    "swell_wave_direction",
    "swell_wave_period",
    "wind_wave_height",
    "wind_wave_direction",
    "wind_wave_period",
    "sea_surface_temperature",
    "sea_level_height_msl",
]
WIND_VARIABLES = ["wind_speed_10m", "wind_direction_10m"]

# Factors to convert Open-Meteo wind speed units to m/s
WIND_UNIT_TO_MS = {
    "m/s": 1.0,
    "km/h": 1 / 3.6,
    "mph": 0.44704,
    "kn": 0.514444,
}


@dataclass
class MarinePoint:
    """One forecast hour. Any field may be missing."""
    ts: str  # local time, e.g. "2025-10-06T03:00"
    hs: Optional[float] = None
    tp: Optional[float] = None
    dp: Optional[float] = None
    swell_hs: Optional[float] = None
    swell_tp: Optional[float] = None
    swell_dp: Optional[float] = None
    wind_ms: Optional[float] = None
    wind_dir: Optional[float] = None
    water_c: Optional[float] = None
    sea_level: Optional[float] = None


def wind_to_ms(value: Optional[float], unit: str) -> Optional[float]:
    """Convert a wind speed to m/s. Unknown units are assumed to be m/s."""
    if value is None:
        return None
    return value * WIND_UNIT_TO_MS.get(unit, 1.0)


def current_hour_iso(tz: str, now: Optional[datetime] = None) -> str:
    """Start of the current hour in tz as "YYYY-MM-DDTHH:00"."""
    if now is None:
        now = datetime.now(ZoneInfo(tz))
    elif now.tzinfo is not None:
        now = now.astimezone(ZoneInfo(tz))
    return now.strftime("%Y-%m-%dT%H:00")


class OpenMeteoClient:
    """Client for fetching hourly surf forecasts from Open-Meteo."""

    def __init__(
        self,
        forecast_days: int = 7,
        horizon_hours: int = 48,
        timeout: float = 15.0,
        cache_ttl: int = CACHE_TTL_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            forecast_days: Days requested from the APIs
            horizon_hours: Hours kept from the start of the current hour
            timeout: Per-request timeout in seconds
            cache_ttl: In-memory cache lifetime in seconds (0 disables)
            session: Optional requests session (for testing)
        """
        self.forecast_days = forecast_days
        self.horizon_hours = horizon_hours
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache: dict[str, tuple[datetime, list[MarinePoint]]] = {}
        self._cache_ttl = cache_ttl

    def _get_json(self, url: str, params: dict) -> dict:
        """GET a JSON document, wrapping failures in OpenMeteoError."""
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise OpenMeteoError(f"Open-Meteo request failed: {e}") from e
        except ValueError as e:
            raise OpenMeteoError(f"Open-Meteo returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise OpenMeteoError("Open-Meteo returned an unexpected payload")
        if data.get("error"):
            raise OpenMeteoError(f"Open-Meteo error: {data.get('reason', 'Unknown error')}")
        if not isinstance(data.get("hourly"), dict) or "time" not in data["hourly"]:
            raise OpenMeteoError("Open-Meteo response missing hourly data")

        return data

    def fetch_marine(self, lat: float, lon: float, timezone: str) -> dict:
        """Fetch raw hourly marine data."""
        params = {
            "latitude": lat,
            "longitude": lon,
            "hourly": ",".join(MARINE_VARIABLES),
            "timezone": timezone,
            "forecast_days": self.forecast_days,
            "cell_selection": "sea",
        }
        return self._get_json(MARINE_URL, params)

    def fetch_wind(self, lat: float, lon: float, timezone: str) -> dict:
        """Fetch raw hourly 10m wind for the same horizon."""
        params = {
            "latitude": lat,
            "longitude": lon,
            "hourly": ",".join(WIND_VARIABLES),
            "timezone": timezone,
            "forecast_days": self.forecast_days,
        }
        return self._get_json(WEATHER_URL, params)

    def get_marine_points(
        self,
        lat: float,
        lon: float,
        timezone: str = "UTC",
        now: Optional[datetime] = None,
        use_cache: bool = True,
    ) -> list[MarinePoint]:
        """Get merged hourly points from the current hour onwards.

        Args:
            lat: Latitude
            lon: Longitude
            timezone: IANA timezone for the returned timestamps
            now: Reference time (defaults to the current time)
            use_cache: Whether to use the in-memory cache

        Returns:
            Up to horizon_hours MarinePoint records

        Raises:
            OpenMeteoError: On network, HTTP or payload errors
        """
        cache_key = f"{lat}:{lon}:{timezone}"

        points = None
        if use_cache and cache_key in self._cache:
            cached_time, cached_points = self._cache[cache_key]
            if datetime.now() - cached_time < timedelta(seconds=self._cache_ttl):
                logger.debug(f"Open-Meteo cache hit for {cache_key}")
                points = cached_points

        if points is None:
            marine = self.fetch_marine(lat, lon, timezone)
            wind = self.fetch_wind(lat, lon, timezone)
            points = self.merge(marine, wind)
            if use_cache and self._cache_ttl > 0:
                self._cache[cache_key] = (datetime.now(), points)

        start_ts = current_hour_iso(timezone, now)
        upcoming = [p for p in points if p.ts >= start_ts]
        return upcoming[: self.horizon_hours]

    def merge(self, marine: dict, wind: dict) -> list[MarinePoint]:
        """Merge marine rows with wind rows by timestamp.

        Marine timestamps drive the output; hours without a wind row get
        no wind values.
        """
        unit = (wind.get("hourly_units") or {}).get("wind_speed_10m", "km/h")

        marine_df = self._hourly_frame(marine["hourly"], MARINE_VARIABLES)
        wind_df = self._hourly_frame(wind["hourly"], WIND_VARIABLES)
        wind_df = wind_df.drop_duplicates(subset="time", keep="first")

        df = pd.merge(marine_df, wind_df, on="time", how="left")
        df = df.astype(object).where(df.notna(), None)

        points = []
        for row in df.to_dict("records"):
            points.append(MarinePoint(
                ts=str(row["time"]),
                hs=_float_or_none(row["wave_height"]),
                tp=_float_or_none(row["wave_period"]),
                dp=_float_or_none(row["wave_direction"]),
                swell_hs=_float_or_none(row["swell_wave_height"]),
                swell_tp=_float_or_none(row["swell_wave_period"]),
                swell_dp=_float_or_none(row["swell_wave_direction"]),
                wind_ms=wind_to_ms(_float_or_none(row["wind_speed_10m"]), unit),
                wind_dir=_float_or_none(row["wind_direction_10m"]),
                water_c=_float_or_none(row["sea_surface_temperature"]),
                sea_level=_float_or_none(row["sea_level_height_msl"]),
            ))

        return points

    def _hourly_frame(self, hourly: dict, variables: list[str]) -> pd.DataFrame:
        """Build a frame with a time column and one column per variable.

        Missing or short variable arrays are padded with NaN.
        """
        times = list(hourly.get("time") or [])
        columns = {"time": times}
        for var in variables:
            values = list(hourly.get(var) or [])
            values = values[: len(times)] + [None] * (len(times) - len(values))
            columns[var] = pd.to_numeric(pd.Series(values, dtype=object), errors="coerce")
        return pd.DataFrame(columns)


def _float_or_none(value) -> Optional[float]:
    if value is None:
        return None
    return float(value)


class OpenMeteoError(Exception):
    """Exception raised for Open-Meteo client errors."""

    pass
