"""
Main entry point for a *single* drone in a networked swarm.

This process runs on the drone (or next to a simulator) and shares its
part of the blackboard with its peers over MQTT. Every drone loads the
same mission config, so each one can request coverage of the configured
search area for itself; peers learn about it through the bridge.

Usage:
    python -m swarm_coverage.drone_main --id 0
    python -m swarm_coverage.drone_main --id 1 --config my_mission.yaml
    python -m swarm_coverage.drone_main --id 2 --wait-for-operator
"""

import argparse
import asyncio
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .core.blackboard import Blackboard
from .core.comms import BlackboardBridge, MqttClient
from .core.config_models import DEFAULT_CONFIG_PATH, Settings, load_settings
from .core.coverage import CoverageController
from .core.drone import SimulatedFlightController
from .core.logger import MissionLogger
from .core.system_controller import SystemController
from .core.telemetry_logger import WaypointLogger


@dataclass
class DroneNode:
    """Everything one drone process runs, wired to a single blackboard."""
    drone_id: int
    config: Settings
    blackboard: Blackboard
    mqtt: MqttClient
    bridge: BlackboardBridge
    flight: SimulatedFlightController
    controller: CoverageController


def build_node(config: Settings, drone_id: int, mqtt_client: Optional[MqttClient] = None) -> DroneNode:
    """Create and connect up the components for one drone. Raises ValueError for an unknown id."""
    drone_cfg = next((d for d in config.drones if d.id == drone_id), None)
    if drone_cfg is None:
        raise ValueError(f"No configuration found for drone {drone_id}")

    log_dir = Path(config.logging.log_dir)
    logger = MissionLogger(
        log_dir=str(log_dir),
        max_logs=config.logging.max_logs,
        drone_id=drone_id,
        log_to_console=config.logging.log_to_console,
    )
    waypoint_logger = None
    if config.logging.waypoint_log:
        waypoint_logger = WaypointLogger(log_dir=str(log_dir / "waypoints"), drone_id=drone_id)

    blackboard = Blackboard()
    if mqtt_client is None:
        mqtt_client = MqttClient(config.mqtt, client_id=f"drone{drone_id}", logger=logger)

    flight = SimulatedFlightController(
        drone_id,
        blackboard,
        start=drone_cfg.start,
        cruise_speed_m_s=config.simulation.cruise_speed_m_s,
        climb_rate_m_s=config.simulation.climb_rate_m_s,
        takeoff_altitude=config.area_coverage.min_altitude,
    )
    controller = CoverageController(drone_id, blackboard, config, logger, waypoint_logger=waypoint_logger)

    return DroneNode(
        drone_id=drone_id,
        config=config,
        blackboard=blackboard,
        mqtt=mqtt_client,
        bridge=BlackboardBridge.for_drone(blackboard, mqtt_client, drone_id),
        flight=flight,
        controller=controller,
    )


def request_own_coverage(node: DroneNode, algorithm: Optional[str] = None):
    """Put this drone's coverage request for the configured search area on its blackboard."""
    config = node.config
    system = SystemController(node.blackboard)
    system.set_search_area(config.search_area.id, config.search_area.region)
    system.update_general_parameters(config.area_coverage.min_altitude, config.area_coverage.vertical_separation)
    system.request_area_coverage([node.drone_id], config.search_area.id,
                                 algorithm or config.area_coverage.algorithm)


async def run_node(node: DroneNode, tick_s: Optional[float] = None, ticks: Optional[int] = None):
    """
    Run the coverage controller with the flight controller and the
    bridge in the background. Returns after `ticks` controller ticks,
    or runs until cancelled when ticks is None.
    """
    tick_s = tick_s or node.config.area_coverage.tick_interval_s
    node.flight.connect()
    background = [
        asyncio.create_task(node.bridge.run(node.config.mqtt.sync_interval_s)),
        asyncio.create_task(node.flight.run(tick_s)),
    ]
    try:
        await node.controller.run(tick_s, ticks=ticks)
    finally:
        for task in background:
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)


async def main(argv=None):
    """Main asynchronous entry point for one drone."""
    parser = argparse.ArgumentParser(description="Swarm area coverage drone")
    parser.add_argument('--id', type=int, required=True, help="Numeric id of this drone (see drones: in the config)")
    parser.add_argument('--config', default=str(DEFAULT_CONFIG_PATH), help="Path to mission_config.yaml")
    parser.add_argument('--algorithm', default=None, help="Override the configured coverage algorithm")
    parser.add_argument('--wait-for-operator', action='store_true',
                        help="Don't request coverage from the config; wait for one over MQTT")
    args = parser.parse_args(argv)

    try:
        config = load_settings(args.config)
    except FileNotFoundError:
        print(f"FATAL: Configuration file not found at {args.config}")
        sys.exit(1)
    except Exception as e:
        print(f"FATAL: Error validating configuration file {args.config}:\n{e}")
        sys.exit(1)

    node = None
    try:
        node = build_node(config, args.id)
        if not await node.mqtt.connect():
            raise ConnectionError("Failed to connect to MQTT broker.")

        if not args.wait_for_operator:
            request_own_coverage(node, args.algorithm)

        print(f"--- [Drone {args.id}] {args.algorithm or config.area_coverage.algorithm} coverage "
              f"of search area {config.search_area.id} (Ctrl+C to stop) ---")
        await run_node(node)

    except (KeyboardInterrupt, asyncio.CancelledError):
        print(f"\n[drone {args.id}] Shutting down...")
    except Exception as e:
        print(f"[drone {args.id}] Fatal error: {e}")
        traceback.print_exc()
        sys.exit(1)
    finally:
        if node and node.mqtt.is_connected:
            await node.mqtt.disconnect()
        print(f"[drone {args.id}] Shutdown complete.")


def cli():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
