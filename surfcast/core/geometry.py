"""Compass geometry helpers shared by the directional scorers.

All bearings are degrees on a 0-360 compass. Inputs outside that range
are normalized with modulo arithmetic before use.
"""


def normalize_bearing(deg: float) -> float:
    """Map any bearing into [0, 360)."""
    return deg % 360.0


def angular_distance(a: float, b: float) -> float:
    """Shortest distance between two bearings, in [0, 180]."""
    diff = abs(normalize_bearing(a) - normalize_bearing(b))
    return min(diff, 360.0 - diff)


def is_in_circular_window(x: float, min_deg: float, max_deg: float) -> bool:
    """Check if bearing x lies in the clockwise arc from min_deg to max_deg.

    Windows may wrap through north (e.g. 350 -> 20). A window whose
    bounds coincide covers the full circle.

    Args:
        x: Bearing to test
        min_deg: Start of the window
        max_deg: End of the window

    Returns:
        True if inside the window
    """
    x = normalize_bearing(x)
    lo = normalize_bearing(min_deg)
    hi = normalize_bearing(max_deg)

    if lo == hi:
        return True

    if lo < hi:
        return lo <= x <= hi
    else:
        # Wrapping window (e.g., 340-10)
        return x >= lo or x <= hi


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t
