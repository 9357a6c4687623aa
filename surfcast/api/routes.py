"""API routes for spots and forecasts."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from surfcast.api.dependencies import get_forecaster, get_spot_db
from surfcast.clients.open_meteo_client import OpenMeteoError
from surfcast.core.forecaster import SpotForecaster, UnknownSpotError
from surfcast.core.rating import WeightProfile
from surfcast.core.spot import SpotDatabase


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["forecast"])


def weights_from_query(**values: Optional[float]) -> Optional[WeightProfile]:
    """Build a weight profile from query values; None if none were given."""
    given = {axis: value for axis, value in values.items() if value is not None}
    if not given:
        return None
    return WeightProfile.from_mapping(given)


@router.get("/spots")
def list_spots(spot_db: SpotDatabase = Depends(get_spot_db)) -> list[dict]:
    """Get all spots."""
    return [
        {"id": s.id, "name": s.name, "lat": s.lat, "lon": s.lon}
        for s in spot_db.get_all_spots()
    ]


@router.get("/forecast")
def get_forecast(
    spot_id: str = Query("", description="Spot identifier"),
    w_wind: Optional[float] = Query(None, description="Wind weight"),
    w_dir: Optional[float] = Query(None, description="Swell direction weight"),
    w_period: Optional[float] = Query(None, description="Period weight"),
    w_size: Optional[float] = Query(None, description="Size weight"),
    w_tide: Optional[float] = Query(None, description="Tide weight"),
    forecaster: SpotForecaster = Depends(get_forecaster),
):
    """
    Get the rated hourly forecast for a spot.

    Without any weight parameters hours are scored with the legacy fixed
    weights; with any of them the hour score is the custom aggregate.
    """
    weights = weights_from_query(
        wind=w_wind, dir=w_dir, period=w_period, size=w_size, tide=w_tide,
    )

    try:
        forecast = forecaster.forecast_spot(spot_id, weights)
    except UnknownSpotError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except OpenMeteoError as e:
        logger.warning(f"Forecast failed for {spot_id}: {e}")
        return JSONResponse(status_code=502, content={"error": str(e) or "Failed to fetch forecast"})

    return forecast.to_dict()
