"""
Waypoint convergence and altitude stacking.
"""
import pytest

from swarm_coverage.core.altitude import ALTITUDE_DIFFERENCE, assign_altitude
from swarm_coverage.core.config_models import SnakeConfig
from swarm_coverage.core.convergence import REACHED_ACCURACY, mission_finished, target_reached
from swarm_coverage.core.position import Position, Region
from swarm_coverage.strategies.coverage.random import RandomCoverageStrategy
from swarm_coverage.strategies.coverage.snake import SnakeCoverageStrategy


def test_target_reached_at_target():
    for p in [Position(0, 0), Position(40.4435, -79.9442), Position(-33.9, 151.2)]:
        assert target_reached(p, p)


def test_target_reached_needs_both_axes_within_accuracy():
    target = Position(40.0, -79.0)
    eps = REACHED_ACCURACY
    assert target_reached(Position(40.0 + eps / 2, -79.0 - eps / 2), target)
    assert not target_reached(Position(40.0 + 2 * eps, -79.0), target)
    assert not target_reached(Position(40.0, -79.0 - 2 * eps), target)
    assert not target_reached(Position(40.0 + 2 * eps, -79.0 + 2 * eps), target)


def test_target_reached_custom_accuracy():
    assert target_reached(Position(0, 0), Position(0.5, 0.5), accuracy=1.0)
    assert not target_reached(Position(0, 0), Position(1.0, 0.0), accuracy=1.0)


def test_mission_finished_follows_pattern():
    assert not mission_finished(None)

    snake = SnakeCoverageStrategy(SnakeConfig(line_width=1.0))
    snake.initialize(0, Region((0, 0), (1, 1)), 1)
    assert not mission_finished(snake)
    snake.get_next_target_location(None)
    snake.get_next_target_location(None)
    assert mission_finished(snake)

    random_strategy = RandomCoverageStrategy()
    random_strategy.initialize(0, Region((0, 0), (1, 1)), 1)
    random_strategy.get_next_target_location(None)
    assert not mission_finished(random_strategy)


def test_altitude_strictly_increasing_in_rank():
    altitudes = [assign_altitude(2.0, rank) for rank in range(6)]
    assert altitudes[0] == 2.0
    for lower, higher in zip(altitudes, altitudes[1:]):
        assert higher - lower == pytest.approx(ALTITUDE_DIFFERENCE)


def test_distinct_ranks_keep_configured_separation():
    separation = 1.25
    altitudes = [assign_altitude(10.0, rank, separation) for rank in range(5)]
    for i, a in enumerate(altitudes):
        for b in altitudes[i + 1:]:
            assert abs(b - a) >= separation - 1e-9


def test_altitude_rejects_bad_input():
    with pytest.raises(ValueError):
        assign_altitude(2.0, 1, vertical_separation=0.0)
    with pytest.raises(ValueError):
        assign_altitude(2.0, 1, vertical_separation=-0.5)
    with pytest.raises(ValueError):
        assign_altitude(2.0, -1)
