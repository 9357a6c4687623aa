"""Runtime settings loaded from the environment or a .env file."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


logger = logging.getLogger(__name__)

ENV_PREFIX = "SURFCAST_"


def _load_dotenv() -> dict[str, str]:
    """Read SURFCAST_* KEY=VALUE pairs from a .env file in the project root or cwd."""
    values: dict[str, str] = {}
    env_paths = [
        Path(__file__).parent.parent / ".env",
        Path.cwd() / ".env",
    ]
    for env_path in env_paths:
        if not env_path.exists():
            continue
        try:
            with open(env_path) as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue
                    key, value = line.split("=", 1)
                    key = key.strip()
                    if key.startswith(ENV_PREFIX) and key not in values:
                        values[key] = value.strip().strip("\"'")
        except OSError as e:
            logger.debug(f"Could not read {env_path}: {e}")
    return values


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application settings."""
    spots_path: Optional[Path] = None
    forecast_days: int = 7
    horizon_hours: int = 48
    cache_ttl_seconds: int = 1800  # 30 minutes
    request_timeout_s: float = 15.0
    timezone: Optional[str] = None  # overrides per-spot lookup
    tide_from_sea_level: bool = False

    api_title: str = "Surfcast API"


def load_settings() -> Settings:
    """Build settings from environment variables, falling back to .env.

    Environment variables win over .env entries. Unparseable numbers are
    logged and left at their defaults.
    """
    raw = _load_dotenv()
    raw.update({k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)})

    settings = Settings()

    if raw.get("SURFCAST_SPOTS_PATH"):
        settings.spots_path = Path(raw["SURFCAST_SPOTS_PATH"])
    if raw.get("SURFCAST_TIMEZONE"):
        try:
            ZoneInfo(raw["SURFCAST_TIMEZONE"])
            settings.timezone = raw["SURFCAST_TIMEZONE"]
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Ignoring unknown SURFCAST_TIMEZONE={raw['SURFCAST_TIMEZONE']!r}")
    if raw.get("SURFCAST_TIDE_FROM_SEA_LEVEL"):
        settings.tide_from_sea_level = _as_bool(raw["SURFCAST_TIDE_FROM_SEA_LEVEL"])

    numeric = {
        "SURFCAST_FORECAST_DAYS": ("forecast_days", int),
        "SURFCAST_HORIZON_HOURS": ("horizon_hours", int),
        "SURFCAST_CACHE_TTL_SECONDS": ("cache_ttl_seconds", int),
        "SURFCAST_REQUEST_TIMEOUT_S": ("request_timeout_s", float),
    }
    for key, (attr, cast) in numeric.items():
        if not raw.get(key):
            continue
        try:
            setattr(settings, attr, cast(raw[key]))
        except ValueError:
            logger.warning(f"Ignoring invalid {key}={raw[key]!r}")

    return settings
