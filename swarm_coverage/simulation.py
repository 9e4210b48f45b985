"""
In-process swarm simulation.

Every drone gets its own coverage controller and simulated flight
controller, all sharing one blackboard and one simulated clock. Useful
for trying out coverage patterns without a broker or any hardware.

Usage:
    python -m swarm_coverage.simulation
"""

import asyncio
import traceback
from pathlib import Path
from typing import Dict, Optional

from .core.blackboard import Blackboard
from .core.config_models import Settings, load_settings
from .core.coverage import CoverageController
from .core.drone import SimulatedFlightController
from .core.logger import MissionLogger
from .core.state_machine import CoveragePhase
from .core.system_controller import SystemController
from .core.telemetry_logger import WaypointLogger


class SimClock:
    """Simulated time, advanced explicitly by the simulation."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float):
        self.now += dt


class SwarmSimulation:
    """All drones from the config flying one search area together."""

    def __init__(self, config: Settings, log_dir: Optional[str] = None, start_time: float = 0.0):
        self.config = config
        self.clock = SimClock(start_time)
        self.blackboard = Blackboard(clock=self.clock)
        self.system = SystemController(self.blackboard)
        self.tick_s = config.simulation.tick_interval_s

        log_root = Path(log_dir or config.logging.log_dir)
        self.flights: Dict[int, SimulatedFlightController] = {}
        self.controllers: Dict[int, CoverageController] = {}

        for drone_cfg in config.drones:
            self.flights[drone_cfg.id] = SimulatedFlightController(
                drone_cfg.id,
                self.blackboard,
                start=drone_cfg.start,
                cruise_speed_m_s=config.simulation.cruise_speed_m_s,
                climb_rate_m_s=config.simulation.climb_rate_m_s,
                takeoff_altitude=config.area_coverage.min_altitude,
            )
            logger = MissionLogger(
                log_dir=str(log_root),
                max_logs=config.logging.max_logs,
                drone_id=drone_cfg.id,
                log_to_console=config.logging.log_to_console,
            )
            waypoint_logger = None
            if config.logging.waypoint_log:
                waypoint_logger = WaypointLogger(log_dir=str(log_root / "waypoints"), drone_id=drone_cfg.id)
            self.controllers[drone_cfg.id] = CoverageController(
                drone_cfg.id,
                self.blackboard,
                config,
                logger,
                waypoint_logger=waypoint_logger,
                clock=self.clock,
            )

    def setup(self, algorithm: Optional[str] = None):
        """Bring drones online and request coverage of the configured search area."""
        area = self.config.search_area
        self.system.set_search_area(area.id, area.region)
        self.system.update_general_parameters(
            self.config.area_coverage.min_altitude,
            self.config.area_coverage.vertical_separation,
        )
        for flight in self.flights.values():
            flight.connect()
        self.system.request_area_coverage(
            list(self.controllers), area.id, algorithm or self.config.area_coverage.algorithm
        )

    def tick(self):
        """One simulated tick: every controller decides, then every drone moves."""
        self.clock.advance(self.tick_s)
        for controller in self.controllers.values():
            controller.step()
        for flight in self.flights.values():
            flight.update(self.tick_s)

    def all_finished(self) -> bool:
        return all(c.state == CoveragePhase.FINISHED for c in self.controllers.values())

    def run_ticks(self, ticks: int, stop_when_finished: bool = True) -> int:
        """Run up to `ticks` ticks. Returns how many were run."""
        for count in range(1, ticks + 1):
            self.tick()
            if stop_when_finished and self.all_finished():
                return count
        return ticks

    async def run(self, ticks: Optional[int] = None, realtime: bool = False):
        count = 0
        try:
            while ticks is None or count < ticks:
                self.tick()
                count += 1
                await asyncio.sleep(self.tick_s if realtime else 0)
        except asyncio.CancelledError:
            print("[simulation] Cancelled")
            raise
        finally:
            self.close()

    def close(self):
        for controller in self.controllers.values():
            if controller.waypoint_logger:
                controller.waypoint_logger.close()

    def summaries(self):
        return {drone_id: c.summary() for drone_id, c in self.controllers.items()}


async def main():
    try:
        config = load_settings()
    except FileNotFoundError as e:
        print(f"FATAL: Configuration file not found: {e}")
        return
    except Exception as e:
        print(f"FATAL: Error validating configuration file:\n{e}")
        return

    sim = SwarmSimulation(config)
    sim.setup()
    print(f"[simulation] {len(sim.controllers)} drones, {config.area_coverage.algorithm} coverage of {config.search_area.region}")
    try:
        await sim.run(ticks=600)
    except Exception as e:
        print(f"[simulation] Error: {e}")
        traceback.print_exc()

    for drone_id, summary in sim.summaries().items():
        print(f"[simulation] drone {drone_id}: {summary}")


def cli():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n[simulation] Shutting down.")


if __name__ == "__main__":
    cli()
