"""
Region partitioning - splits a search area into one strip per drone.
"""
from typing import Literal

from .position import Position, Region
from .errors import InvalidRegion

Axis = Literal["latitude", "longitude"]


def partition(region: Region, rank: int, peer_count: int, axis: Axis = "latitude") -> Region:
    """
    Get the cell owned by the drone at `rank` out of `peer_count` drones.

    axis="latitude" cuts equal-height horizontal strips ordered north to
    south; axis="longitude" cuts equal-width vertical strips ordered west
    to east. A peer_count of 0 returns the whole region.

    Pure function of its inputs: every drone computes the same tiling.
    """
    if region.is_degenerate():
        raise InvalidRegion(f"Cannot partition degenerate region {region}")
    if peer_count == 0:
        return region
    if not 0 <= rank < peer_count:
        raise ValueError(f"Rank {rank} out of range for {peer_count} drones")

    if axis == "latitude":
        step = region.height / peer_count
        # Shared edges use the same expression on both sides, so no gaps.
        north = region.north if rank == 0 else region.north - rank * step
        south = region.south if rank == peer_count - 1 else region.north - (rank + 1) * step
        return Region(Position(north, region.west), Position(south, region.east))

    if axis == "longitude":
        step = region.width / peer_count
        west = region.west if rank == 0 else region.west + rank * step
        east = region.east if rank == peer_count - 1 else region.west + (rank + 1) * step
        return Region(Position(region.north, west), Position(region.south, east))

    raise ValueError(f"Unknown partition axis: {axis}")
