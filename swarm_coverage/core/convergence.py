"""
Waypoint and mission convergence checks.
"""
from .position import Position

# Margin (in degrees) used when checking if a location has been reached.
# Planar on purpose: direction-agnostic, and looser near the poles.
REACHED_ACCURACY = 0.0000050


def target_reached(current: Position, target: Position, accuracy: float = REACHED_ACCURACY) -> bool:
    """True iff both latitude and longitude are within `accuracy` of the target."""
    return (abs(current.latitude - target.latitude) < accuracy and
            abs(current.longitude - target.longitude) < accuracy)


def mission_finished(strategy) -> bool:
    """A mission is finished once its pattern is heading for its last waypoint."""
    return strategy is not None and strategy.is_targeting_final_waypoint()
