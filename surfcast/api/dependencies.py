"""FastAPI dependencies for dependency injection."""
from functools import lru_cache

from surfcast.config import Settings, load_settings
from surfcast.core.forecaster import SpotForecaster
from surfcast.core.spot import SpotDatabase


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return load_settings()


@lru_cache()
def get_spot_db() -> SpotDatabase:
    """Get cached spot database instance."""
    return SpotDatabase(get_settings().spots_path)


@lru_cache()
def get_forecaster() -> SpotForecaster:
    """Get cached forecaster instance (shares the client cache across requests)."""
    return SpotForecaster(spot_db=get_spot_db(), settings=get_settings())
