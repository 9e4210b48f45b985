"""
Per-drone process wiring: config -> blackboard, bridge, flight and coverage.
"""
import asyncio
import json

import pytest

from swarm_coverage.core.blackboard import CELL, COVERAGE_REQUESTED, device_key, search_area_key
from swarm_coverage.core.config_models import (
    DroneConfig, LoggingConfig, SearchAreaConfig, Settings, SimulationConfig,
)
from swarm_coverage.core.position import Position, Region
from swarm_coverage.core.state_machine import CoveragePhase
from swarm_coverage.drone_main import build_node, main, request_own_coverage, run_node

AREA = Region((0.001, 0.0), (0.0, 0.001))


class LoopbackMqtt:
    """Stands in for the broker connection: records publishes, never receives."""

    def __init__(self):
        self.published = []
        self.subscriptions = []
        self.is_connected = True

    async def publish(self, topic, payload, retain=False):
        self.published.append((topic, json.loads(json.dumps(payload))))
        return True

    async def subscribe(self, topic):
        self.subscriptions.append(topic)

    async def listen(self):
        await asyncio.Event().wait()
        yield


def node_settings(tmp_path):
    return Settings(
        search_area=SearchAreaConfig(id=4, region=AREA),
        simulation=SimulationConfig(cruise_speed_m_s=50.0),
        logging=LoggingConfig(log_dir=str(tmp_path / "logs"), log_to_console=False),
        drones=[DroneConfig(id=0), DroneConfig(id=3, start=Position(0.0, 0.0005))],
    )


def test_build_node_shares_one_blackboard(tmp_path):
    mqtt = LoopbackMqtt()
    node = build_node(node_settings(tmp_path), 3, mqtt_client=mqtt)
    assert node.drone_id == 3
    assert node.controller.blackboard is node.blackboard
    assert node.flight.blackboard is node.blackboard
    assert node.bridge.blackboard is node.blackboard
    assert node.bridge.mqtt is mqtt
    assert node.bridge.prefixes == ("device.3.", "lattice.")
    assert node.flight.position == Position(0.0, 0.0005)


def test_unknown_drone_id_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        build_node(node_settings(tmp_path), 9, mqtt_client=LoopbackMqtt())


def test_request_own_coverage_uses_config(tmp_path):
    node = build_node(node_settings(tmp_path), 0, mqtt_client=LoopbackMqtt())
    request_own_coverage(node, "inside_out")
    assert node.blackboard.get(search_area_key(4)) == AREA
    assert node.blackboard.get(device_key(0, COVERAGE_REQUESTED)) == "inside_out"


def test_run_node_covers_and_shares_its_cell(tmp_path):
    mqtt = LoopbackMqtt()
    node = build_node(node_settings(tmp_path), 0, mqtt_client=mqtt)
    request_own_coverage(node)

    asyncio.run(run_node(node, tick_s=0.001, ticks=5))

    assert node.controller.state == CoveragePhase.COVERING
    assert node.blackboard.get(device_key(0, CELL)) == AREA
    assert mqtt.subscriptions == ["blackboard/#"]
    topics = {topic for topic, _ in mqtt.published}
    assert f"blackboard/{device_key(0, CELL)}" in topics


def test_main_exits_on_missing_config():
    with pytest.raises(SystemExit):
        asyncio.run(main(["--id", "0", "--config", "does/not/exist.yaml"]))
