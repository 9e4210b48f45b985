"""
Per-drone area coverage controller.

One controller runs on every drone. Each tick it reads the blackboard,
works out how many peers share its search area and where it ranks among
them, carves out its own cell, stacks itself on a separate altitude layer
and then feeds waypoints from the active coverage pattern to the flight
controller. There is no coordinator: drones looking at the same snapshot
reach the same answer on their own.
"""

import asyncio
import dataclasses
import time
import traceback
from dataclasses import dataclass
from typing import Optional

from .altitude import assign_altitude
from .availability import available_drones, check_freshness, resolve
from .blackboard import (
    ASSIGNED_ALTITUDE, ASSIGNED_SEARCH_AREA, AVAILABLE_MY_IDX, AVAILABLE_TOTAL,
    CELL, CELL_INITIALIZED, COVERAGE_GENERATION, COVERAGE_REQUESTED, LOCATION,
    MOVEMENT_REQUESTED, MOVEMENT_TARGET, MOVEMENT_TARGET_ALT, SWARM_LINE_WIDTH,
    SWARM_MIN_ALTITUDE, SWARM_VERTICAL_SEPARATION, TARGET, Blackboard, device_key,
)
from .config_models import Settings
from .convergence import mission_finished, target_reached
from .drone import MovementCommand
from .errors import InvalidRegion, NoCandidate, NotAvailable, StaleSnapshot
from .logger import MissionLogger
from .position import Position, Region
from .state_machine import CoveragePhase, CoverageStateMachine
from .telemetry_logger import WaypointLogger
from ..strategies import get_coverage_strategy
from ..strategies.base import CoverageContext, CoverageStrategy


@dataclass(frozen=True)
class CoverageRequest:
    """What was asked of this drone. A different request restarts coverage."""
    algorithm: str
    search_area_id: int
    region: Region
    generation: int = 0


@dataclass
class CoverageState:
    request: CoverageRequest
    strategy: CoverageStrategy
    algorithm: str
    rank: int = 0
    peer_count: int = 0
    cell_initialized: bool = False
    cell: Optional[Region] = None
    target: Optional[Position] = None
    altitude: Optional[float] = None
    finished: bool = False
    waypoints: int = 0


class CoverageController:
    """
    Area coverage driver for a *single* drone.
    This class *is* the model for the state machine.
    """

    def __init__(self,
                 drone_id: int,
                 blackboard: Blackboard,
                 config: Settings,
                 logger: MissionLogger,
                 waypoint_logger: WaypointLogger | None = None,
                 clock=time.time):

        self.drone_id = drone_id
        self.blackboard = blackboard
        self.config = config
        self.logger = logger
        self.waypoint_logger = waypoint_logger
        self.clock = clock

        self.coverage: Optional[CoverageState] = None
        self._rejected_request: Optional[CoverageRequest] = None
        self._unavailable = False
        self._stale = False
        self._invalid_region: Optional[CoverageRequest] = None

        self.state_machine = CoverageStateMachine(self)

        self.logger.log(f"Initialized coverage controller for drone {drone_id}", "info")

    def _key(self, field: str) -> str:
        return device_key(self.drone_id, field)

    def _publish(self, field: str, value):
        self.blackboard.set(self._key(field), value)

    # --- Request handling ---

    def read_request(self) -> Optional[CoverageRequest]:
        """The coverage request currently on the blackboard for this drone, if any."""
        bb = self.blackboard
        algorithm = bb.get(self._key(COVERAGE_REQUESTED))
        area_id = bb.get(self._key(ASSIGNED_SEARCH_AREA))
        if not algorithm or area_id is None:
            return None
        region = bb.search_area(area_id)
        if region is None:
            return None
        return CoverageRequest(
            algorithm=algorithm,
            search_area_id=area_id,
            region=region,
            generation=int(bb.get(self._key(COVERAGE_GENERATION), 0) or 0),
        )

    def _strategy_config(self, algorithm: str):
        config = self.config.strategy_config(algorithm)
        # An operator-set line width overrides the file for sweep patterns
        line_width = self.blackboard.get(SWARM_LINE_WIDTH)
        if line_width is not None and "line_width" in type(config).model_fields:
            config = config.model_copy(update={"line_width": float(line_width)})
        return config

    def _start_coverage(self, request: CoverageRequest) -> bool:
        try:
            strategy = get_coverage_strategy(request.algorithm, self._strategy_config(request.algorithm))
        except (ValueError, AttributeError) as e:
            if request != self._rejected_request:
                self.logger.log(f"Rejecting coverage request '{request.algorithm}': {e}", "error")
                self._rejected_request = request
            return False

        self.coverage = CoverageState(request=request, strategy=strategy, algorithm=request.algorithm)
        self._publish(CELL_INITIALIZED, False)
        self._publish(TARGET, None)
        self.logger.log(
            f"Starting {request.algorithm} coverage of search area {request.search_area_id} "
            f"{request.region} (generation {request.generation})", "info"
        )

        if self.state == CoveragePhase.IDLE:
            self.search_requested()
        else:
            self.switch_coverage()
        return True

    def set_new_coverage(self, algorithm: str) -> bool:
        """
        Switch to another coverage pattern over the same search area.
        The cell is recomputed for the new pattern on the next tick.
        """
        if self.coverage is None:
            self.logger.log(f"Cannot switch to {algorithm}: no coverage in progress", "warning")
            return False
        request = dataclasses.replace(self.coverage.request, algorithm=algorithm)
        if not self._start_coverage(request):
            return False
        # Record the switch so the next read of the request agrees with it
        self._publish(COVERAGE_REQUESTED, algorithm)
        return True

    def _reset(self):
        self.logger.log("Area coverage request withdrawn", "info")
        self.coverage = None
        self._publish(CELL_INITIALIZED, False)
        self._publish(TARGET, None)
        if self.state != CoveragePhase.IDLE:
            self.reset_search()

    # --- Coordination step ---

    def step(self, now: float | None = None) -> None:
        """
        Run one coordination step. Calling it again with nothing changed
        on the blackboard does nothing new.
        """
        now = self.clock() if now is None else now

        request = self.read_request()
        if request is None:
            if self.coverage is not None or self.state != CoveragePhase.IDLE:
                self._reset()
            return

        if self.coverage is None or request != self.coverage.request:
            if not self._start_coverage(request):
                return

        # Availability scan and cell set must see one snapshot
        with self.blackboard.atomic():
            ranking = self._refresh_rank(now)
            if ranking is None:
                return
            if not self.coverage.cell_initialized:
                self._init_search_cell(*ranking)
                return

        self._advance(now)

    def _refresh_rank(self, now: float):
        """Resolve (rank, peer_count) and publish it. None if this drone has no rank."""
        drones = self.blackboard.read_drones()
        try:
            rank, peer_count = resolve(self.drone_id, drones)
        except NotAvailable as e:
            if not self._unavailable:
                self.logger.log(f"{e}; holding until it is", "warning")
                self._unavailable = True
            return None
        self._unavailable = False

        try:
            check_freshness(available_drones(self.drone_id, drones), now,
                            self.config.area_coverage.stale_after_s)
        except StaleSnapshot as e:
            if not self._stale:
                self.logger.log(str(e), "warning")
                self._stale = True
        else:
            self._stale = False

        if self.blackboard.get(self._key(AVAILABLE_TOTAL)) != peer_count:
            self._publish(AVAILABLE_TOTAL, peer_count)
        if self.blackboard.get(self._key(AVAILABLE_MY_IDX)) != rank:
            self._publish(AVAILABLE_MY_IDX, rank)

        cov = self.coverage
        if cov.cell_initialized and not cov.finished and (rank, peer_count) != (cov.rank, cov.peer_count):
            self.logger.log(
                f"Peer set changed: rank {cov.rank}/{cov.peer_count} -> {rank}/{peer_count}, recomputing cell",
                "info"
            )
            cov.cell_initialized = False
            cov.target = None
            self._publish(CELL_INITIALIZED, False)
            self.switch_coverage()
        return rank, peer_count

    def _init_search_cell(self, rank: int, peer_count: int):
        cov = self.coverage
        try:
            cell = cov.strategy.initialize(rank, cov.request.region, peer_count)
        except InvalidRegion as e:
            if cov.request != self._invalid_region:
                self.logger.log(f"Cannot partition search area {cov.request.search_area_id}: {e}", "error")
                self._invalid_region = cov.request
            return
        self._invalid_region = None

        altitude = self._calc_and_move_to_altitude(rank)
        if altitude is None:
            return

        cov.rank = rank
        cov.peer_count = peer_count
        cov.cell = cell
        cov.altitude = altitude
        cov.target = None
        cov.cell_initialized = True

        self._publish(CELL, cell)
        self._publish(CELL_INITIALIZED, True)
        self.logger.log(
            f"Cell {cell} for rank {rank} of {peer_count} ({cov.algorithm}), altitude {altitude:.2f}m",
            "info"
        )
        self.cell_ready()

    def _calc_and_move_to_altitude(self, rank: int) -> Optional[float]:
        """Work out this drone's flight layer and ask to climb to it."""
        coverage_config = self.config.area_coverage
        min_altitude = self.blackboard.get(SWARM_MIN_ALTITUDE, coverage_config.min_altitude)
        separation = self.blackboard.get(SWARM_VERTICAL_SEPARATION, coverage_config.vertical_separation)
        try:
            altitude = assign_altitude(float(min_altitude), rank, float(separation))
        except ValueError as e:
            self.logger.log(f"Cannot assign altitude: {e}", "error")
            return None

        self._publish(ASSIGNED_ALTITUDE, altitude)
        self._publish(MOVEMENT_TARGET_ALT, altitude)
        self._publish(MOVEMENT_REQUESTED, MovementCommand.MOVE_TO_ALTITUDE)
        return altitude

    def _advance(self, now: float):
        cov = self.coverage
        if cov.finished:
            return

        position = self.blackboard.get(self._key(LOCATION))
        if position is None:
            self.logger.log("No location reported yet, waiting", "debug")
            return

        context = CoverageContext(
            drone_id=self.drone_id,
            position=position,
            search_area_id=cov.request.search_area_id,
            blackboard=self.blackboard,
            now=now,
        )
        cov.strategy.observe(context)

        if cov.target is None:
            self._set_new_target(context)
            return

        if not target_reached(position, cov.target, self.config.area_coverage.reached_accuracy):
            return

        if mission_finished(cov.strategy):
            cov.finished = True
            self.logger.log(f"Reached final waypoint {cov.target}", "info")
            self.coverage_complete()
            fallback = self.config.area_coverage.fallback_algorithm
            if fallback and fallback != cov.algorithm:
                self.logger.log(f"Changing over to {fallback} coverage", "info")
                self.set_new_coverage(fallback)
            return

        self._set_new_target(context)

    def _set_new_target(self, context: CoverageContext):
        cov = self.coverage
        try:
            target = cov.strategy.get_next_target_location(context)
        except NoCandidate as e:
            self.logger.log(f"No waypoint this tick: {e}", "warning")
            return

        cov.target = target
        cov.waypoints += 1
        self._publish(TARGET, target)
        self._publish(MOVEMENT_TARGET, target)
        self._publish(MOVEMENT_REQUESTED, MovementCommand.MOVE_TO_GPS)
        self.logger.log(f"Waypoint {cov.waypoints}: {target}", "debug")

        if self.waypoint_logger:
            self.waypoint_logger.log_waypoint(
                context.now, self.drone_id, self.state.value, cov.algorithm,
                cov.rank, cov.peer_count, target, cov.altitude
            )

    # --- State Machine Callbacks ---

    def _on_state_change(self, event):
        self.logger.log(f"Phase {event.transition.source} -> {event.transition.dest}", "info")

    def _log_coverage_summary(self, event):
        self.logger.log_summary(self.summary())

    def summary(self) -> dict:
        data = {"Drone": self.drone_id, "Phase": self.state.value}
        cov = self.coverage
        if cov is not None:
            data.update({
                "Algorithm": cov.algorithm,
                "Search Area": cov.request.search_area_id,
                "Rank": f"{cov.rank}/{cov.peer_count}",
                "Cell": str(cov.cell) if cov.cell else "N/A",
                "Altitude": cov.altitude,
                "Waypoints": cov.waypoints,
            })
        return data

    # --- Scheduler ---

    async def run(self, tick_s: float | None = None, ticks: int | None = None) -> None:
        """
        Tick loop. Errors in a step are logged and the loop carries on;
        ticks=None runs until cancelled.
        """
        tick_s = tick_s or self.config.area_coverage.tick_interval_s
        count = 0
        try:
            while ticks is None or count < ticks:
                try:
                    self.step()
                except Exception as e:
                    self.logger.log(f"Error in coverage step: {e}", "error")
                    traceback.print_exc()
                count += 1
                await asyncio.sleep(tick_s)
        except asyncio.CancelledError:
            self.logger.log("Coverage loop cancelled", "warning")
            raise
        finally:
            if self.waypoint_logger:
                self.waypoint_logger.close()
