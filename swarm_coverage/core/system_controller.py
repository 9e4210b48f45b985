"""
Operator-side helpers that put requests on the blackboard.

Nothing here talks to drones directly: it only writes the keys the
coverage controllers read on their next tick.
"""
from typing import Dict, Iterable, Optional

from .blackboard import (
    ASSIGNED_SEARCH_AREA, COVERAGE_GENERATION, COVERAGE_REQUESTED, MOVEMENT_REQUESTED,
    SWARM_LINE_WIDTH, SWARM_MIN_ALTITUDE, SWARM_VERTICAL_SEPARATION, Blackboard,
    device_key, search_area_key,
)
from .drone import MovementCommand
from .position import Position, Region


class SystemController:
    """Issues swarm-wide requests through a blackboard."""

    def __init__(self, blackboard: Blackboard):
        self.blackboard = blackboard
        self.total_search_areas = 0

    def set_search_area(self, area_id: int, region: Region) -> None:
        self.blackboard.set(search_area_key(area_id), region)
        self.total_search_areas = max(self.total_search_areas, area_id + 1)

    def update_general_parameters(self, min_altitude: float, vertical_separation: float) -> None:
        """Swarm-wide flight parameters. These override the config file."""
        if vertical_separation <= 0:
            raise ValueError(f"vertical_separation must be positive, got {vertical_separation}")
        self.blackboard.set(SWARM_MIN_ALTITUDE, min_altitude)
        self.blackboard.set(SWARM_VERTICAL_SEPARATION, vertical_separation)

    def request_area_coverage(self, drone_ids: Iterable[int], area_id: int, algorithm: str,
                              line_width: Optional[float] = None, generation: int = 0) -> None:
        """
        Assign drones to a search area and ask them to cover it.

        Bump `generation` to make drones restart a request identical to
        the one they are already running.
        """
        if self.blackboard.search_area(area_id) is None:
            raise KeyError(f"Search area {area_id} has not been set")
        if line_width is not None:
            if line_width <= 0:
                raise ValueError(f"line_width must be positive, got {line_width}")
            self.blackboard.set(SWARM_LINE_WIDTH, line_width)

        with self.blackboard.atomic():
            for drone_id in drone_ids:
                self.blackboard.set(device_key(drone_id, ASSIGNED_SEARCH_AREA), area_id)
                self.blackboard.set(device_key(drone_id, COVERAGE_GENERATION), generation)
                self.blackboard.set(device_key(drone_id, COVERAGE_REQUESTED), algorithm)

    def stop_area_coverage(self, drone_ids: Iterable[int]) -> None:
        for drone_id in drone_ids:
            self.blackboard.set(device_key(drone_id, COVERAGE_REQUESTED), None)

    def _send_movement(self, command: MovementCommand, drone_ids: Optional[Iterable[int]]):
        ids = self.blackboard.device_ids() if drone_ids is None else drone_ids
        for drone_id in ids:
            self.blackboard.set(device_key(drone_id, MOVEMENT_REQUESTED), command)

    def send_takeoff_command(self, drone_ids: Optional[Iterable[int]] = None) -> None:
        self._send_movement(MovementCommand.TAKEOFF, drone_ids)

    def send_land_command(self, drone_ids: Optional[Iterable[int]] = None) -> None:
        self._send_movement(MovementCommand.LAND, drone_ids)

    def get_current_locations(self) -> Dict[int, Position]:
        """Last reported location of every known drone."""
        return {d.id: d.location for d in self.blackboard.read_drones()}
