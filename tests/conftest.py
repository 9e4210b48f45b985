"""
Shared fixtures for the coverage tests.
"""
import pytest

from swarm_coverage.core.blackboard import (
    ASSIGNED_SEARCH_AREA, LOCATION, MOBILE, Blackboard, device_key,
)
from swarm_coverage.core.config_models import (
    AreaCoverageConfig, LoggingConfig, SearchAreaConfig, Settings, SnakeConfig,
)
from swarm_coverage.core.logger import MissionLogger
from swarm_coverage.core.position import Position, Region


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def blackboard(clock):
    return Blackboard(clock=clock)


@pytest.fixture
def make_settings(tmp_path):
    """Settings over the ((0,0),(10,10)) square unless told otherwise."""
    def _make(region=Region((0, 0), (10, 10)), line_width=1.0, **coverage):
        coverage.setdefault("stale_after_s", 1e9)
        return Settings(
            search_area=SearchAreaConfig(id=0, region=region),
            area_coverage=AreaCoverageConfig(**coverage),
            snake=SnakeConfig(line_width=line_width),
            logging=LoggingConfig(log_dir=str(tmp_path / "logs"), log_to_console=False),
        )
    return _make


@pytest.fixture
def make_logger(tmp_path):
    def _make(drone_id=0):
        return MissionLogger(log_dir=str(tmp_path / "logs"), drone_id=drone_id, log_to_console=False)
    return _make


def add_drone(bb: Blackboard, drone_id: int, location=Position(0, 0), area=None, mobile=True):
    """Put a drone record on the blackboard the way a flight controller would."""
    bb.set(device_key(drone_id, MOBILE), mobile)
    bb.set(device_key(drone_id, LOCATION), location)
    if area is not None:
        bb.set(device_key(drone_id, ASSIGNED_SEARCH_AREA), area)
