"""
End-to-end: several simulated drones sweeping one area together.
"""
import asyncio

from swarm_coverage.core.blackboard import ASSIGNED_ALTITUDE, CELL, device_key
from swarm_coverage.core.config_models import (
    AreaCoverageConfig, DroneConfig, LoggingConfig, SearchAreaConfig, Settings,
    SimulationConfig, SnakeConfig,
)
from swarm_coverage.core.position import Position, Region
from swarm_coverage.core.state_machine import CoveragePhase
from swarm_coverage.simulation import SimClock, SwarmSimulation

AREA = Region((0.001, 0.0), (0.0, 0.001))


def sim_settings(tmp_path, fallback=None):
    return Settings(
        search_area=SearchAreaConfig(id=0, region=AREA),
        area_coverage=AreaCoverageConfig(algorithm="snake", fallback_algorithm=fallback),
        snake=SnakeConfig(line_width=0.00025),
        simulation=SimulationConfig(cruise_speed_m_s=50.0, climb_rate_m_s=2.0, tick_interval_s=1.0),
        logging=LoggingConfig(log_dir=str(tmp_path / "logs"), log_to_console=False, waypoint_log=True),
        drones=[
            DroneConfig(id=0, start=Position(0.0, 0.0)),
            DroneConfig(id=1, start=Position(0.0, 0.0005)),
        ],
    )


def test_sim_clock():
    clock = SimClock(5.0)
    clock.advance(1.5)
    assert clock() == 6.5


def test_swarm_sweeps_area_and_finishes(tmp_path):
    sim = SwarmSimulation(sim_settings(tmp_path))
    sim.setup()
    ticks = sim.run_ticks(200)
    sim.close()

    assert sim.all_finished()
    assert ticks < 200

    cells = [sim.blackboard.get(device_key(i, CELL)) for i in (0, 1)]
    assert cells[0].north == AREA.north
    assert cells[0].south == cells[1].north
    assert cells[1].south == AREA.south
    assert sim.blackboard.get(device_key(0, ASSIGNED_ALTITUDE)) == 2.0
    assert sim.blackboard.get(device_key(1, ASSIGNED_ALTITUDE)) == 2.5

    for drone_id, controller in sim.controllers.items():
        assert controller.coverage.waypoints == 4
        assert cells[drone_id].contains(sim.flights[drone_id].position)

    for drone_id in (0, 1):
        csv_files = list((tmp_path / "logs" / "waypoints").glob(f"waypoints_drone{drone_id}_*.csv"))
        assert len(csv_files) == 1
        # header + one row per waypoint
        assert len(csv_files[0].read_text().strip().splitlines()) == 5


def test_async_run_advances_simulated_time(tmp_path):
    sim = SwarmSimulation(sim_settings(tmp_path, fallback="random"))
    sim.setup()
    asyncio.run(sim.run(ticks=5))
    assert sim.clock() == 5.0
    assert all(c.state == CoveragePhase.COVERING for c in sim.controllers.values())
    summaries = sim.summaries()
    assert summaries[1]["Algorithm"] == "snake"
    assert summaries[1]["Rank"] == "1/2"
