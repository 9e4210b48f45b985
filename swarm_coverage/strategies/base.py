"""
Coverage strategy interface
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..core.blackboard import Blackboard
from ..core.position import Position, Region


@dataclass
class CoverageContext:
    """What a strategy may look at when picking the next waypoint."""
    drone_id: int
    position: Position
    search_area_id: int
    blackboard: Blackboard
    now: float


class CoverageStrategy(ABC):
    """Interface for coverage patterns (one instance per drone and request)"""

    name = "base"

    @abstractmethod
    def initialize(self, rank: int, search_area: Region, peer_count: int) -> Region:
        """Reset progress and return the cell this drone will cover"""

    @abstractmethod
    def get_next_target_location(self, context: CoverageContext) -> Position:
        """Produce the next waypoint"""

    def is_targeting_final_waypoint(self) -> bool:
        return False

    def observe(self, context: CoverageContext) -> None:
        """Called every tick with the drone's latest state"""
        pass
