"""
MinTime coverage - revisit-time-driven patrol over a lattice.

- Discretizes the search area into a lattice of candidate positions.
- Tracks, per lattice cell, when any drone was last there (shared via the
  blackboard so peers don't re-cover fresh cells).
- Greedily heads for the cell with the best staleness vs. travel-time
  trade-off, avoiding cells other drones are already heading to.

Never finishes on its own: it is an open-ended patrol.
"""
import math
from typing import Optional, Tuple

import numpy as np

from ...core.availability import available_drones
from ...core.blackboard import TARGET, device_key, lattice_key
from ...core.config_models import MinTimeConfig
from ...core.errors import NoCandidate
from ...core.position import METERS_PER_DEG_LAT, Position, Region
from ..base import CoverageContext, CoverageStrategy


def _band_centres(count: int, spacing: float, extent: float) -> np.ndarray:
    """Offsets of band centres from the starting edge, last band clipped to extent."""
    starts = np.arange(count) * spacing
    ends = np.minimum(starts + spacing, extent)
    return (starts + ends) / 2.0


class MinTimeCoverageStrategy(CoverageStrategy):
    """Utility-maximizing revisit patrol."""

    name = "min_time"

    def __init__(self, config: MinTimeConfig):
        self.description = "Revisit the stalest reachable lattice cell"
        self.config = config
        self.area: Region | None = None
        self.center_lat = np.empty((0, 0))
        self.center_lon = np.empty((0, 0))
        # None until the first tick tells us what time it is
        self.last_visited: Optional[np.ndarray] = None

    def initialize(self, rank: int, search_area: Region, peer_count: int) -> Region:
        self.area = search_area
        self.discretize_search_area()
        return search_area

    def discretize_search_area(self):
        """
        Build the lattice of cell centres at the configured spacing.
        A partial band on the south or east edge still gets its own
        row or column, centred on what is left of the area.
        """
        spacing = self.config.lattice_spacing
        rows = max(0, int(math.ceil(self.area.height / spacing - 1e-9)))
        cols = max(0, int(math.ceil(self.area.width / spacing - 1e-9)))
        lats = self.area.north - _band_centres(rows, spacing, self.area.height)
        lons = self.area.west + _band_centres(cols, spacing, self.area.width)
        self.center_lat, self.center_lon = np.meshgrid(lats, lons, indexing="ij")
        self.last_visited = None

    @property
    def shape(self) -> Tuple[int, int]:
        return self.center_lat.shape

    def cell_index(self, position: Position) -> Optional[Tuple[int, int]]:
        """Lattice cell containing a position, or None if off the lattice."""
        if self.area is None or self.center_lat.size == 0 or not self.area.contains(position):
            return None
        rows, cols = self.shape
        spacing = self.config.lattice_spacing
        # Points on the south or east boundary belong to the last band
        row = min(int((self.area.north - position.latitude) // spacing), rows - 1)
        col = min(int((position.longitude - self.area.west) // spacing), cols - 1)
        return row, col

    def cell_center(self, index: Tuple[int, int]) -> Position:
        return Position(float(self.center_lat[index]), float(self.center_lon[index]))

    # --- Shared lattice state ---

    def _ensure_lattice(self, now: float):
        if self.last_visited is None:
            self.last_visited = np.full(self.shape, now, dtype=float)

    def _merge_shared_visits(self, context: CoverageContext):
        rows, cols = self.shape
        for (row, col), ts in context.blackboard.lattice_visits(context.search_area_id).items():
            if row < rows and col < cols and ts > self.last_visited[row, col]:
                self.last_visited[row, col] = ts

    def observe(self, context: CoverageContext) -> None:
        """Stamp the cell we are in and pull in what peers have covered."""
        if self.area is None:
            return
        self._ensure_lattice(context.now)
        self._merge_shared_visits(context)
        index = self.cell_index(context.position)
        if index is not None:
            self.last_visited[index] = context.now
            context.blackboard.set(lattice_key(context.search_area_id, *index), context.now)

    # --- Planning ---

    def get_utility(self, context: CoverageContext) -> np.ndarray:
        """
        Utility of every lattice cell for a drone at context.position:
        staleness_weight * seconds since last visit
        - travel_weight * seconds to fly there.
        """
        staleness = context.now - self.last_visited

        here = context.position
        meters_per_deg_lon = METERS_PER_DEG_LAT * math.cos(math.radians(here.latitude))
        dy = (self.center_lat - here.latitude) * METERS_PER_DEG_LAT
        dx = (self.center_lon - here.longitude) * meters_per_deg_lon
        travel_time = np.hypot(dx, dy) / self.config.cruise_speed_m_s

        return self.config.staleness_weight * staleness - self.config.travel_weight * travel_time

    def _apply_peer_claims(self, context: CoverageContext, utility: np.ndarray, eligible: np.ndarray):
        """
        Cells a lower-id (higher-priority) peer is heading to are off
        limits; cells claimed only by higher-id peers are discounted.
        """
        bb = context.blackboard
        for peer in available_drones(context.drone_id, bb.read_drones()):
            if peer.id == context.drone_id:
                continue
            target = bb.get(device_key(peer.id, TARGET))
            if target is None:
                continue
            index = self.cell_index(target)
            if index is None:
                continue
            if peer.id < context.drone_id:
                eligible[index] = False
            else:
                utility[index] -= self.config.claim_discount

    def get_next_target_location(self, context: CoverageContext) -> Position:
        if self.area is None:
            raise RuntimeError("MinTime coverage used before initialize()")
        if self.center_lat.size == 0:
            raise NoCandidate(f"Lattice for {self.area} is empty at spacing {self.config.lattice_spacing}")

        self.observe(context)
        utility = self.get_utility(context)
        eligible = np.ones(self.shape, dtype=bool)
        self._apply_peer_claims(context, utility, eligible)

        if not eligible.any():
            raise NoCandidate("Every lattice cell is claimed by a higher-priority drone")

        utility[~eligible] = -np.inf
        best = np.unravel_index(np.argmax(utility), self.shape)
        return self.cell_center(best)


# Factory function for composition
def create_min_time_coverage_strategy(config: MinTimeConfig):
    return MinTimeCoverageStrategy(config)
