"""
Snake (boustrophedon) coverage - systematic sweep of the drone's own cell
"""
import math

from ...core.config_models import SnakeConfig
from ...core.partition import partition
from ...core.position import Position, Region
from ..base import CoverageContext, CoverageStrategy


class SnakeCoverageStrategy(CoverageStrategy):
    """Back-and-forth horizontal sweep, one leg endpoint per call."""

    name = "snake"

    def __init__(self, config: SnakeConfig):
        self.description = "Systematic back-and-forth sweep of the drone's cell"
        self.config = config
        self.cell: Region | None = None
        self.rank = 0
        self.num_legs = 0
        self.emitted = 0

    def initialize(self, rank: int, search_area: Region, peer_count: int) -> Region:
        self.cell = partition(search_area, rank, peer_count, self.config.partition_axis)
        self.rank = rank
        self.num_legs = max(1, math.ceil(self.cell.height / self.config.line_width - 1e-9))
        self.emitted = 0
        return self.cell

    @property
    def total_waypoints(self) -> int:
        return 2 * self.num_legs

    def leg_latitude(self, leg: int) -> float:
        """Latitude of a leg: centre of its line_width band, kept inside the cell"""
        offset = min((leg + 0.5) * self.config.line_width, self.cell.height)
        return self.cell.north - offset

    def leg_heads_east(self, leg: int) -> bool:
        # Odd ranks start on the east edge so neighbours never meet head-on
        return (leg + self.rank) % 2 == 0

    def get_next_target_location(self, context: CoverageContext | None = None) -> Position:
        """
        Get the next leg endpoint. Once the last endpoint has been handed
        out, keeps returning it.
        """
        if self.cell is None:
            raise RuntimeError("Snake coverage used before initialize()")

        index = min(self.emitted, self.total_waypoints - 1)
        leg, end = divmod(index, 2)

        heads_east = self.leg_heads_east(leg)
        start_lon, end_lon = (self.cell.west, self.cell.east) if heads_east else (self.cell.east, self.cell.west)
        longitude = end_lon if end else start_lon

        self.emitted = min(self.emitted + 1, self.total_waypoints)
        return Position(self.leg_latitude(leg), longitude)

    def is_targeting_final_waypoint(self) -> bool:
        return self.cell is not None and self.emitted >= self.total_waypoints


# Factory function for composition
def create_snake_coverage_strategy(config: SnakeConfig):
    return SnakeCoverageStrategy(config)
