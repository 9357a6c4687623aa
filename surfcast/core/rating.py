"""Surf quality rating engine.

Scoring approach:
- Five independent axes, each scored 0..1 (higher = better)
- Optional aggregate 0-10 via a weighted geometric mean
- Short qualitative reasons derived from the axis scores

Axes:
- Wind: light and offshore preferred; strong wind kills the score
- Direction: swell arriving from the spot's window, best at its centre
- Period: linear ramp from the spot's minimum to ideal period
- Size: linear ramp up to a break-type cap
- Tide: parabola peaking at the ideal tide, 0 outside the window

The geometric mean lets a single near-zero axis (e.g. howling onshore wind)
drag the whole rating down even when everything else is perfect.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from surfcast.core.geometry import (
    angular_distance,
    clamp01,
    is_in_circular_window,
    lerp,
)
from surfcast.core.spot import BreakType, SpotProfile


# Wind
WIND_KILL_SPEED_MS = 18.0         # speed penalty reaches 1 (score 0) here
WIND_ONSHORE_DEADBAND_DEG = 30.0  # within this of onshore scores 0
WIND_RAMP_DEG = 150.0             # deadband edge -> dead offshore

# Swell direction falloff from window centre
DIR_FALLOFF_INSIDE_DEG = 60.0
DIR_FALLOFF_OUTSIDE_DEG = 120.0

# Period (seconds)
DEFAULT_MIN_PERIOD_S = 7.0
DEFAULT_IDEAL_PERIOD_S = 13.0
MIN_PERIOD_SPAN_S = 1.0

# Size caps (metres)
SIZE_CAP_M = {
    BreakType.BEACH: 2.5,
    BreakType.REEF: 3.0,
    BreakType.POINT: 4.0,
}
DEFAULT_SIZE_CAP_M = 3.0
MIN_SIZE_CAP_M = 0.1

# Tide (metres)
TIDE_MIN_WINDOW_M = 0.1

# Aggregation
GEOMETRIC_EPSILON = 1e-6

# Reason thresholds
GOOD_THRESHOLD = 0.6
POOR_THRESHOLD = 0.2
SOLID_SIZE_THRESHOLD = 0.8


class Axis(str, Enum):
    """Rating axes. Values are the public axis ids."""
    WIND = "wind"
    DIR = "dir"
    PERIOD = "period"
    SIZE = "size"
    TIDE = "tide"

    @property
    def label(self) -> str:
        return AXIS_LABELS[self]


AXIS_LABELS = {
    Axis.WIND: "Wind",
    Axis.DIR: "Direction",
    Axis.PERIOD: "Period",
    Axis.SIZE: "Size",
    Axis.TIDE: "Tide",
}

AXIS_ORDER = (Axis.WIND, Axis.DIR, Axis.PERIOD, Axis.SIZE, Axis.TIDE)


@dataclass(frozen=True)
class WeightProfile:
    """Per-axis weights for the aggregate. Missing axes weigh 0."""
    wind: float = 0.0
    dir: float = 0.0
    period: float = 0.0
    size: float = 0.0
    tide: float = 0.0

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> "WeightProfile":
        """Build a profile from a loose mapping.

        Keys may be Axis members or axis id strings; unknown keys and
        None values are ignored.
        """
        known = {axis.value for axis in Axis}
        values = {}
        for key, value in mapping.items():
            axis_id = key.value if isinstance(key, Axis) else str(key)
            if axis_id in known and value is not None:
                values[axis_id] = float(value)
        return cls(**values)

    def weight_for(self, axis: Axis) -> float:
        """Raw weight for an axis, floored at 0. Non-finite weights count as 0."""
        value = getattr(self, axis.value)
        if not math.isfinite(value):
            return 0.0
        return max(0.0, value)

    def normalized(self) -> dict[Axis, float]:
        """Weights scaled to sum to 1 (all 0 if every weight is 0)."""
        raw = {axis: self.weight_for(axis) for axis in AXIS_ORDER}
        total = sum(raw.values()) or 1.0
        return {axis: w / total for axis, w in raw.items()}


@dataclass(frozen=True)
class RatingInputs:
    """One forecast hour plus the spot it is rated for."""
    hs: float        # significant wave height (m)
    tp: float        # peak period (s)
    dp: float        # swell direction, coming from (deg)
    wind: float      # 10m wind speed (m/s)
    wind_dir: float  # wind direction, coming from (deg)
    spot: SpotProfile
    tide: Optional[float] = None  # metres, same datum as spot tide window


@dataclass(frozen=True)
class ComponentScore:
    """Score for a single axis."""
    axis: Axis
    label: str
    score: float

    def to_dict(self) -> dict:
        return {"id": self.axis.value, "label": self.label, "score": self.score}


@dataclass(frozen=True)
class Aggregate:
    """Combined 0-10 rating."""
    score: float
    weights: dict[Axis, float]
    method: str = "geometric"

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "score_0_10": self.score,
            "weights": {axis.value: w for axis, w in self.weights.items()},
        }


@dataclass
class RatedResult:
    """Complete rating for one hour."""
    components: list[ComponentScore]
    aggregate: Optional[Aggregate] = None
    reasons: list[str] = field(default_factory=list)

    def score_for(self, axis: Axis) -> float:
        for component in self.components:
            if component.axis == axis:
                return component.score
        raise KeyError(axis)

    def to_dict(self) -> dict:
        return {
            "components": [c.to_dict() for c in self.components],
            "aggregate": self.aggregate.to_dict() if self.aggregate else None,
            "reasons": list(self.reasons),
        }


# ------------------------------ axis scoring ------------------------------


def wind_quality(wind_ms: float, wind_dir: float, coast_bearing: float) -> float:
    """Score wind by direction relative to the coast and by speed.

    The angle is measured from dead onshore: 180 means the wind blows
    from the offshore bearing, 0 means straight onshore. Anything within
    30 degrees of onshore scores 0. Strong wind is penalised even when
    offshore since it still ruins the surface.

    Args:
        wind_ms: Wind speed (m/s)
        wind_dir: Wind direction (where it's coming FROM)
        coast_bearing: Direction the break faces

    Returns:
        Score 0-1
    """
    offshore_bearing = (coast_bearing + 180) % 360
    off_angle = 180.0 - angular_distance(wind_dir, offshore_bearing)
    angle_score = clamp01((off_angle - WIND_ONSHORE_DEADBAND_DEG) / WIND_RAMP_DEG)
    speed_penalty = 1.0 - clamp01(wind_ms / WIND_KILL_SPEED_MS)
    return clamp01(angle_score * speed_penalty)


def direction_quality(dp: float, dir_min: float, dir_max: float) -> float:
    """Score swell direction against the spot's window.

    1.0 at the window centre, fading to 0 at 60 degrees away when inside
    the window and at 120 degrees when outside it.
    """
    inside = is_in_circular_window(dp, dir_min, dir_max)
    span = (dir_max - dir_min + 360) % 360
    center = (dir_min + span / 2) % 360
    diff = angular_distance(dp, center)
    denom = DIR_FALLOFF_INSIDE_DEG if inside else DIR_FALLOFF_OUTSIDE_DEG
    return clamp01(1 - diff / denom)


def period_quality(tp: float, min_period: float, ideal_period: float) -> float:
    """0 at/below min_period, ramping to 1 at ideal_period."""
    span = max(ideal_period - min_period, MIN_PERIOD_SPAN_S)
    return clamp01((tp - min_period) / span)


def size_quality(hs: float, break_type: BreakType) -> float:
    """Linear 0..1 up to the break type's size cap."""
    cap = SIZE_CAP_M.get(break_type, DEFAULT_SIZE_CAP_M)
    return clamp01(hs / max(cap, MIN_SIZE_CAP_M))


def tide_quality(tide: Optional[float], spot: SpotProfile) -> float:
    """Score the tide against the spot's tide window.

    Neutral (1.0) when either the observation or the window is missing.
    Outside the window scores 0; inside is a parabola peaking at the
    ideal tide and reaching 0 at the window edges.
    """
    if tide is None or not spot.has_tide_window:
        return 1.0

    if tide < spot.min_tide or tide > spot.max_tide:
        return 0.0

    window = (spot.max_tide - spot.min_tide) or TIDE_MIN_WINDOW_M
    ideal = spot.ideal_tide
    if ideal is None:
        ideal = lerp(spot.min_tide, spot.max_tide, 0.5)
    t = (tide - ideal) / (window / 2)
    return clamp01(1 - t * t)


# ------------------------------ reasons -----------------------------------


def reasons_from_scores(scores: Mapping[Axis, float]) -> list[str]:
    """Short qualitative statements in fixed axis order."""
    reasons = []

    if scores[Axis.WIND] >= GOOD_THRESHOLD:
        reasons.append("offshore or light winds")
    elif scores[Axis.WIND] <= POOR_THRESHOLD:
        reasons.append("onshore/strong winds")

    if scores[Axis.DIR] >= GOOD_THRESHOLD:
        reasons.append("favourable swell direction")
    else:
        reasons.append("suboptimal swell direction")

    if scores[Axis.PERIOD] >= GOOD_THRESHOLD:
        reasons.append("good period")
    elif scores[Axis.PERIOD] <= POOR_THRESHOLD:
        reasons.append("short/weak period")

    if scores[Axis.SIZE] >= SOLID_SIZE_THRESHOLD:
        reasons.append("solid size")
    elif scores[Axis.SIZE] <= POOR_THRESHOLD:
        reasons.append("small surf")

    if scores[Axis.TIDE] == 0:
        reasons.append("tide out of window")

    return reasons


# ------------------------------ public API --------------------------------


def component_scores(inputs: RatingInputs) -> list[ComponentScore]:
    """Compute all five axis scores in fixed order."""
    spot = inputs.spot
    min_period = spot.min_period if spot.min_period is not None else DEFAULT_MIN_PERIOD_S
    ideal_period = spot.ideal_period if spot.ideal_period is not None else DEFAULT_IDEAL_PERIOD_S

    scores = {
        Axis.WIND: wind_quality(inputs.wind, inputs.wind_dir, spot.coast_bearing),
        Axis.DIR: direction_quality(inputs.dp, spot.swell_dir_min, spot.swell_dir_max),
        Axis.PERIOD: period_quality(inputs.tp, min_period, ideal_period),
        Axis.SIZE: size_quality(inputs.hs, spot.break_type),
        Axis.TIDE: tide_quality(inputs.tide, spot),
    }

    return [
        ComponentScore(axis=axis, label=axis.label, score=clamp01(scores[axis]))
        for axis in AXIS_ORDER
    ]


def _round_tenth(x: float) -> float:
    # Half-up, not Python's banker's rounding
    return math.floor(x * 10 * 10 + 0.5) / 10


def aggregate_score(
    components: list[ComponentScore],
    weights: Optional[WeightProfile] = None,
) -> Optional[Aggregate]:
    """Combine component scores into a 0-10 rating.

    Uses a weighted geometric mean with an epsilon floor so a zero axis
    does not produce log(0).

    Args:
        components: Axis scores
        weights: Weight profile. None disables aggregation.

    Returns:
        Aggregate, or None if no weights were given
    """
    if weights is None:
        return None

    normalized = weights.normalized()
    log_sum = sum(
        normalized[c.axis] * math.log(max(c.score, GEOMETRIC_EPSILON))
        for c in components
    )
    geom = math.exp(log_sum)

    return Aggregate(
        score=_round_tenth(geom),
        weights={c.axis: normalized[c.axis] for c in components},
    )


def evaluate_rating(
    inputs: RatingInputs,
    weights: Optional[WeightProfile] = None,
) -> RatedResult:
    """Full evaluation in one call: components, aggregate and reasons."""
    components = component_scores(inputs)
    reasons = reasons_from_scores({c.axis: c.score for c in components})

    return RatedResult(
        components=components,
        aggregate=aggregate_score(components, weights),
        reasons=reasons,
    )
