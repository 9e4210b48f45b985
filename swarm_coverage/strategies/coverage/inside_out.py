"""
Inside-out coverage - rectangular spiral from the centre of the cell
"""
import math

from ...core.config_models import InsideOutConfig
from ...core.partition import partition
from ...core.position import Position, Region
from ..base import CoverageContext, CoverageStrategy


class InsideOutCoverageStrategy(CoverageStrategy):
    """
    Concentric rings of increasing size around the cell centre.

    Waypoint 0 is the centre; ring k (1..n) is then visited corner by
    corner NW, NE, SE, SW. Ring n touches the cell bounds, so it is the
    last one.
    """

    name = "inside_out"

    def __init__(self, config: InsideOutConfig):
        self.description = "Spiral outwards from the cell centre"
        self.config = config
        self.cell: Region | None = None
        self.num_rings = 0
        self.emitted = 0

    def initialize(self, rank: int, search_area: Region, peer_count: int) -> Region:
        self.cell = partition(search_area, rank, peer_count, self.config.partition_axis)
        half_extent = max(self.cell.height, self.cell.width) / 2.0
        self.num_rings = max(1, math.ceil(half_extent / self.config.line_width - 1e-9))
        self.emitted = 0
        return self.cell

    @property
    def total_waypoints(self) -> int:
        return 1 + 4 * self.num_rings

    def waypoint(self, index: int) -> Position:
        center = self.cell.center
        if index == 0:
            return center
        ring, corner = divmod(index - 1, 4)
        scale = (ring + 1) / self.num_rings
        d_lat = scale * self.cell.height / 2.0
        d_lon = scale * self.cell.width / 2.0
        lat_sign, lon_sign = [(1, -1), (1, 1), (-1, 1), (-1, -1)][corner]
        return Position(center.latitude + lat_sign * d_lat, center.longitude + lon_sign * d_lon)

    def get_next_target_location(self, context: CoverageContext | None = None) -> Position:
        if self.cell is None:
            raise RuntimeError("Inside-out coverage used before initialize()")
        index = min(self.emitted, self.total_waypoints - 1)
        self.emitted = min(self.emitted + 1, self.total_waypoints)
        return self.waypoint(index)

    def is_targeting_final_waypoint(self) -> bool:
        return self.cell is not None and self.emitted >= self.total_waypoints


# Factory function for composition
def create_inside_out_coverage_strategy(config: InsideOutConfig):
    return InsideOutCoverageStrategy(config)
