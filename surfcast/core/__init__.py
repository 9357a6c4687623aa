"""Core surf rating engine and forecast orchestration."""

from surfcast.core.geometry import angular_distance, clamp01, is_in_circular_window
from surfcast.core.rating import (
    Aggregate,
    Axis,
    ComponentScore,
    RatedResult,
    RatingInputs,
    WeightProfile,
    aggregate_score,
    component_scores,
    evaluate_rating,
)
from surfcast.core.legacy import LEGACY_WEIGHTS, LegacyScore, score_forecast
from surfcast.core.spot import (
    BreakType,
    Coordinates,
    SpotDatabase,
    SpotProfile,
    get_spot,
    get_spot_database,
)
from surfcast.core.forecaster import (
    ForecastSummary,
    HourlyRating,
    SpotForecast,
    SpotForecaster,
    UnknownSpotError,
)

__all__ = [
    # Geometry
    "angular_distance",
    "clamp01",
    "is_in_circular_window",
    # Rating
    "Aggregate",
    "Axis",
    "ComponentScore",
    "RatedResult",
    "RatingInputs",
    "WeightProfile",
    "aggregate_score",
    "component_scores",
    "evaluate_rating",
    # Legacy
    "LEGACY_WEIGHTS",
    "LegacyScore",
    "score_forecast",
    # Spot
    "BreakType",
    "Coordinates",
    "SpotDatabase",
    "SpotProfile",
    "get_spot",
    "get_spot_database",
    # Forecaster
    "ForecastSummary",
    "HourlyRating",
    "SpotForecast",
    "SpotForecaster",
    "UnknownSpotError",
]
