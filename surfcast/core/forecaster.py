"""Spot forecast orchestration.

Fetches hourly forecasts and rates every hour for a spot.
This is the layer that connects:
- Spot database (spot.py)
- Forecast client (clients/)
- Rating engine (rating.py, legacy.py)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from surfcast.clients.open_meteo_client import MarinePoint, OpenMeteoClient, OpenMeteoError
from surfcast.clients.timezone_lookup import timezone_for
from surfcast.config import Settings, load_settings
from surfcast.core.legacy import score_forecast
from surfcast.core.rating import Aggregate, RatingInputs, WeightProfile, evaluate_rating
from surfcast.core.spot import SpotDatabase, SpotProfile, get_spot_database


logger = logging.getLogger(__name__)

SOURCE = "open-meteo:marine+weather"
SOURCE_LABEL = "Open-Meteo Marine"
SUMMARY_HOURS = 24


def first_present(*values: Optional[float]) -> float:
    """First value that is not None, else 0."""
    for value in values:
        if value is not None:
            return value
    return 0.0


@dataclass
class HourlyRating:
    """A forecast hour with its rating."""
    ts: str
    hs: float
    tp: float
    dp: float
    wind_ms: float
    wind_dir: float
    water_c: Optional[float]
    sea_level_m: Optional[float]
    score: float
    components: dict[str, float]
    reasons: list[str]
    aggregate: Optional[Aggregate] = None
    source: str = SOURCE

    def to_dict(self) -> dict:
        data = {
            "ts": self.ts,
            "hs": self.hs,
            "tp": self.tp,
            "dp": self.dp,
            "wind_ms": self.wind_ms,
            "wind_dir": self.wind_dir,
            "water_c": self.water_c,
            "sea_level_m": self.sea_level_m,
            "score": self.score,
            "components": dict(self.components),
            "reasons": list(self.reasons),
            "source": self.source,
        }
        if self.aggregate is not None:
            data["aggregate"] = self.aggregate.to_dict()
        return data


@dataclass
class ForecastSummary:
    """Score range over the first day of the forecast."""
    min_score: float = 10.0
    max_score: float = 0.0

    @classmethod
    def from_hours(cls, hours: list[HourlyRating]) -> "ForecastSummary":
        summary = cls()
        for hour in hours[:SUMMARY_HOURS]:
            summary.max_score = max(summary.max_score, hour.score)
            summary.min_score = min(summary.min_score, hour.score)
        return summary

    def to_dict(self) -> dict:
        return {"minScore": self.min_score, "maxScore": self.max_score}


@dataclass
class SpotForecast:
    """Rated hourly forecast for one spot."""
    spot: SpotProfile
    timezone: str
    hours: list[HourlyRating]
    summary: ForecastSummary
    fetch_time: Optional[datetime] = None
    rank: int = 0

    @property
    def best_score(self) -> float:
        return self.summary.max_score

    def to_dict(self) -> dict:
        return {
            "spot": {
                "id": self.spot.id,
                "name": self.spot.name,
                "lat": self.spot.lat,
                "lon": self.spot.lon,
            },
            "meta": {
                "timezone": self.timezone,
                "source": SOURCE_LABEL,
                "fetched_at": self.fetch_time.isoformat() if self.fetch_time else None,
            },
            "today_summary": self.summary.to_dict(),
            "hours": [hour.to_dict() for hour in self.hours],
        }


class SpotForecaster:
    """Produces rated forecasts for spots."""

    def __init__(
        self,
        spot_db: Optional[SpotDatabase] = None,
        client: Optional[OpenMeteoClient] = None,
        settings: Optional[Settings] = None,
        timezone_resolver: Callable[[float, float], str] = timezone_for,
    ):
        """Initialize the forecaster with optional dependency injection.

        Args:
            spot_db: Spot database. Defaults to loading config/spots.yaml.
            client: Forecast client. Defaults to an Open-Meteo client built from settings.
            settings: Runtime settings. Defaults to the environment.
            timezone_resolver: Coordinate -> timezone lookup.
        """
        self.settings = settings or load_settings()
        if spot_db is None:
            if self.settings.spots_path is not None:
                spot_db = SpotDatabase(self.settings.spots_path)
            else:
                spot_db = get_spot_database()
        self.spot_db = spot_db
        self.client = client or OpenMeteoClient(
            forecast_days=self.settings.forecast_days,
            horizon_hours=self.settings.horizon_hours,
            timeout=self.settings.request_timeout_s,
            cache_ttl=self.settings.cache_ttl_seconds,
        )
        self.timezone_resolver = timezone_resolver

    def timezone_for_spot(self, spot: SpotProfile) -> str:
        if self.settings.timezone:
            return self.settings.timezone
        return self.timezone_resolver(spot.lat, spot.lon)

    def build_inputs(self, point: MarinePoint, spot: SpotProfile) -> RatingInputs:
        """Turn a raw forecast point into engine inputs.

        Prefers swell-specific values, then total-wave values, then 0.
        """
        tide = point.sea_level if self.settings.tide_from_sea_level else None
        return RatingInputs(
            hs=first_present(point.swell_hs, point.hs),
            tp=first_present(point.swell_tp, point.tp),
            dp=first_present(point.swell_dp, point.dp),
            wind=first_present(point.wind_ms),
            wind_dir=first_present(point.wind_dir),
            tide=tide,
            spot=spot,
        )

    def rate_point(
        self,
        point: MarinePoint,
        spot: SpotProfile,
        weights: Optional[WeightProfile] = None,
    ) -> HourlyRating:
        """Rate a single forecast hour.

        The legacy score is used unless a weight profile is supplied, in
        which case the custom aggregate replaces it.
        """
        inputs = self.build_inputs(point, spot)
        legacy = score_forecast(inputs)

        score = legacy.score
        aggregate = None
        if weights is not None:
            aggregate = evaluate_rating(inputs, weights).aggregate
            score = aggregate.score

        return HourlyRating(
            ts=point.ts,
            hs=inputs.hs,
            tp=inputs.tp,
            dp=inputs.dp,
            wind_ms=inputs.wind,
            wind_dir=inputs.wind_dir,
            water_c=point.water_c,
            sea_level_m=point.sea_level,
            score=score,
            components=legacy.components,
            reasons=legacy.reasons,
            aggregate=aggregate,
        )

    def forecast_spot(
        self,
        spot_id: str,
        weights: Optional[WeightProfile] = None,
    ) -> SpotForecast:
        """Fetch and rate the forecast for one spot.

        Args:
            spot_id: Spot identifier
            weights: Optional custom weight profile

        Returns:
            SpotForecast

        Raises:
            UnknownSpotError: If the spot id is not in the database
            OpenMeteoError: If the forecast cannot be fetched
        """
        spot = self.spot_db.get_spot(spot_id)
        if spot is None:
            raise UnknownSpotError(f"Unknown spot_id='{spot_id}'")

        tz = self.timezone_for_spot(spot)
        fetch_time = datetime.now()

        try:
            points = self.client.get_marine_points(spot.lat, spot.lon, tz)
        except OpenMeteoError as e:
            logger.warning(f"Forecast fetch failed for {spot.id}: {e}")
            raise

        hours = [self.rate_point(point, spot, weights) for point in points]
        logger.debug(f"Rated {len(hours)} hours for {spot.id} ({tz})")

        return SpotForecast(
            spot=spot,
            timezone=tz,
            hours=hours,
            summary=ForecastSummary.from_hours(hours),
            fetch_time=fetch_time,
        )

    def rank_spots(
        self,
        spots: Optional[list[SpotProfile]] = None,
        weights: Optional[WeightProfile] = None,
        top_n: Optional[int] = None,
    ) -> list[SpotForecast]:
        """Forecast several spots and rank them by best score today.

        Args:
            spots: Spots to rank. Defaults to all spots.
            weights: Optional custom weight profile
            top_n: Return only top N spots. Defaults to all.

        Returns:
            List of SpotForecast sorted by best score (highest first)
        """
        if spots is None:
            spots = self.spot_db.get_all_spots()

        forecasts = []
        for spot in spots:
            try:
                forecasts.append(self.forecast_spot(spot.id, weights))
            except (OpenMeteoError, UnknownSpotError) as e:
                logger.error(f"Failed to forecast spot {spot.id}: {e}")

        forecasts.sort(key=lambda f: f.best_score, reverse=True)

        for i, forecast in enumerate(forecasts, 1):
            forecast.rank = i

        if top_n:
            forecasts = forecasts[:top_n]

        return forecasts


class UnknownSpotError(Exception):
    """Exception raised when a spot id is not in the database."""

    pass
