"""Spot profile model and database loader.

Loads surf spot definitions from spots.yaml and provides a clean interface
for looking spots up by id, name or break type.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

from surfcast.config import load_settings


logger = logging.getLogger(__name__)


class BreakType(str, Enum):
    """Kind of break; sets the size-quality cap."""
    BEACH = "beach"
    REEF = "reef"
    POINT = "point"


@dataclass(frozen=True)
class Coordinates:
    """Geographic coordinates."""
    lat: float
    lon: float


@dataclass(frozen=True)
class SpotProfile:
    """Static description of a surf spot."""
    id: str
    name: str
    coordinates: Coordinates
    coast_bearing: float  # direction the break faces (deg, 0=N)
    break_type: BreakType
    swell_dir_min: float  # acceptable swell window (deg, coming-from)
    swell_dir_max: float
    min_tide: Optional[float] = None  # metres, same datum as tide observations
    ideal_tide: Optional[float] = None
    max_tide: Optional[float] = None
    min_period: Optional[float] = None  # seconds
    ideal_period: Optional[float] = None
    notes: str = ""

    @property
    def lat(self) -> float:
        return self.coordinates.lat

    @property
    def lon(self) -> float:
        return self.coordinates.lon

    @property
    def has_tide_window(self) -> bool:
        """Check if the spot defines both tide bounds."""
        return self.min_tide is not None and self.max_tide is not None


class SpotDatabase:
    """Database of surf spots loaded from YAML."""

    def __init__(self, spots_path: Optional[Path] = None):
        """Initialize the spot database.

        Args:
            spots_path: Path to spots.yaml. Defaults to SURFCAST_SPOTS_PATH
                (environment or .env), then config/spots.yaml.
        """
        if spots_path is None:
            possible_paths = [
                load_settings().spots_path,
                Path(__file__).parent.parent.parent / "config" / "spots.yaml",
                Path.cwd() / "config" / "spots.yaml",
            ]
            for path in possible_paths:
                if path is not None and path.exists():
                    spots_path = path
                    break

        if spots_path is None or not Path(spots_path).exists():
            raise FileNotFoundError("Could not find spots.yaml")

        self.spots_path = Path(spots_path)
        self._spots: dict[str, SpotProfile] = {}
        self._load_spots()

    def _load_spots(self) -> None:
        """Load spots from YAML file."""
        with open(self.spots_path) as f:
            data = yaml.safe_load(f) or {}

        for spot_data in data.get("spots", []):
            spot = self._parse_spot(spot_data)
            if spot.id in self._spots:
                logger.warning(f"Duplicate spot id '{spot.id}' in {self.spots_path}, keeping last")
            self._spots[spot.id] = spot

        logger.debug(f"Loaded {len(self._spots)} spots from {self.spots_path}")

    def _parse_spot(self, data: dict) -> SpotProfile:
        """Parse a spot dictionary into a SpotProfile object."""
        coords = data.get("coordinates", {})
        window = data.get("swell_window", {})
        period = data.get("period", {})
        tide = data.get("tide", {})
        spot_id = data.get("id", "unknown")

        raw_break = str(data.get("break_type", "reef")).lower()
        try:
            break_type = BreakType(raw_break)
        except ValueError:
            logger.warning(f"Unknown break_type '{raw_break}' for spot {spot_id}, using reef")
            break_type = BreakType.REEF

        return SpotProfile(
            id=spot_id,
            name=data.get("name", "Unknown"),
            coordinates=Coordinates(
                lat=coords.get("lat", 0),
                lon=coords.get("lon", 0),
            ),
            coast_bearing=float(data.get("coast_bearing", 0)) % 360,
            break_type=break_type,
            swell_dir_min=float(window.get("min", 0)) % 360,
            swell_dir_max=float(window.get("max", 0)) % 360,
            min_tide=tide.get("min"),
            ideal_tide=tide.get("ideal"),
            max_tide=tide.get("max"),
            min_period=period.get("min"),
            ideal_period=period.get("ideal"),
            notes=(data.get("notes") or "").strip(),
        )

    def get_spot(self, spot_id: str) -> Optional[SpotProfile]:
        """Get a spot by ID.

        Args:
            spot_id: Spot identifier (e.g., "cottesloe")

        Returns:
            SpotProfile or None if not found
        """
        return self._spots.get(spot_id)

    def get_spot_by_name(self, name: str) -> Optional[SpotProfile]:
        """Get a spot by name (case-insensitive partial match)."""
        name_lower = name.lower()
        for spot in self._spots.values():
            if name_lower in spot.name.lower():
                return spot
        return None

    def get_all_spots(self) -> list[SpotProfile]:
        """Get all spots."""
        return list(self._spots.values())

    def get_spots_by_break_type(self, break_type: str) -> list[SpotProfile]:
        """Get all spots of a given break type (beach, reef, point)."""
        return [
            spot for spot in self._spots.values()
            if spot.break_type.value == break_type.lower()
        ]

    @property
    def spot_count(self) -> int:
        """Get total number of spots."""
        return len(self._spots)


# Convenience function for quick access
_default_db: Optional[SpotDatabase] = None


def get_spot_database() -> SpotDatabase:
    """Get the default spot database (singleton)."""
    global _default_db
    if _default_db is None:
        _default_db = SpotDatabase()
    return _default_db


def get_spot(spot_id: str) -> Optional[SpotProfile]:
    """Quick access to get a spot by ID."""
    return get_spot_database().get_spot(spot_id)
