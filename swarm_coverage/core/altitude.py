"""
Altitude allocation - stacks co-located drones on separate flight layers.
"""

# Vertical space (in meters) to leave between drones by default.
ALTITUDE_DIFFERENCE = 0.5


def assign_altitude(min_altitude: float, rank: int, vertical_separation: float = ALTITUDE_DIFFERENCE) -> float:
    """
    Altitude for the drone at `rank`: min_altitude + rank * vertical_separation.

    Whether the separation beats the platform's vertical positioning
    error is a configuration concern and is not checked here.
    """
    if vertical_separation <= 0:
        raise ValueError(f"vertical_separation must be positive, got {vertical_separation}")
    if rank < 0:
        raise ValueError(f"rank must be non-negative, got {rank}")
    return min_altitude + rank * vertical_separation
