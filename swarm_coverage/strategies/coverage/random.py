"""
Random coverage - uniform random waypoints over the whole search area
"""
import random

from ...core.config_models import RandomConfig
from ...core.position import Position, Region
from ..base import CoverageContext, CoverageStrategy


class RandomCoverageStrategy(CoverageStrategy):
    """Random search pattern; never finishes on its own"""

    name = "random"

    def __init__(self, config: RandomConfig | None = None):
        self.description = "Uniform random waypoints over the search area"
        self.config = config or RandomConfig()
        self._rng = random.Random(self.config.seed)
        self.area: Region | None = None

    def initialize(self, rank: int, search_area: Region, peer_count: int) -> Region:
        # No partitioning: every drone roams the whole area
        self.area = search_area
        return search_area

    def get_next_target_location(self, context: CoverageContext | None = None) -> Position:
        if self.area is None:
            raise RuntimeError("Random coverage used before initialize()")
        return Position(
            self._rng.uniform(self.area.south, self.area.north),
            self._rng.uniform(self.area.west, self.area.east),
        )


# Factory function for composition
def create_random_coverage_strategy(config: RandomConfig | None = None):
    return RandomCoverageStrategy(config)
