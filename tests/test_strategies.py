"""
Snake, random and inside-out patterns, and the strategy factory.
"""
import pytest

from swarm_coverage.core.config_models import InsideOutConfig, MinTimeConfig, RandomConfig, SnakeConfig
from swarm_coverage.core.position import Position, Region
from swarm_coverage.strategies import get_coverage_strategy, list_available_strategies
from swarm_coverage.strategies.coverage.inside_out import InsideOutCoverageStrategy
from swarm_coverage.strategies.coverage.min_time import MinTimeCoverageStrategy
from swarm_coverage.strategies.coverage.random import RandomCoverageStrategy
from swarm_coverage.strategies.coverage.snake import SnakeCoverageStrategy


def drain(strategy, limit=1000):
    """Pull waypoints until the pattern reports its final one."""
    waypoints = []
    while not strategy.is_targeting_final_waypoint():
        waypoints.append(strategy.get_next_target_location(None))
        assert len(waypoints) < limit
    return waypoints


# --- Snake ---

def test_snake_waypoint_count_is_two_per_leg():
    snake = SnakeCoverageStrategy(SnakeConfig(line_width=1.0))

    snake.initialize(0, Region((0, 0), (2, 10)), 1)
    assert len(drain(snake)) == 4

    # Ten units tall: legs at 9.5, 8.5, ... 0.5
    snake.initialize(0, Region((0, 0), (10, 2)), 1)
    waypoints = drain(snake)
    assert len(waypoints) == 20
    assert [w.latitude for w in waypoints[::2]] == pytest.approx([9.5 - k for k in range(10)])


def test_snake_partial_last_leg_is_clamped_to_cell():
    snake = SnakeCoverageStrategy(SnakeConfig(line_width=1.0))
    cell = snake.initialize(0, Region((0, 0), (2.5, 4)), 1)
    waypoints = drain(snake)
    assert len(waypoints) == 6
    assert all(cell.contains(w) for w in waypoints)
    assert waypoints[-1].latitude == pytest.approx(cell.south)


def test_snake_legs_alternate_direction():
    snake = SnakeCoverageStrategy(SnakeConfig(line_width=1.0))
    cell = snake.initialize(0, Region((0, 0), (6, 4)), 1)
    waypoints = drain(snake)
    legs = list(zip(waypoints[::2], waypoints[1::2]))
    for k, (start, end) in enumerate(legs):
        assert start.latitude == end.latitude
        if k % 2 == 0:
            assert (start.longitude, end.longitude) == (cell.west, cell.east)
        else:
            assert (start.longitude, end.longitude) == (cell.east, cell.west)
    # North to south
    assert [s.latitude for s, _ in legs] == sorted((s.latitude for s, _ in legs), reverse=True)


def test_snake_odd_rank_starts_east():
    snake = SnakeCoverageStrategy(SnakeConfig(line_width=1.0))
    cell = snake.initialize(1, Region((0, 0), (10, 10)), 2)
    assert cell == Region((5, 0), (0, 10))
    first = snake.get_next_target_location(None)
    assert first == Position(4.5, 10)


def test_snake_final_flag_and_restart():
    snake = SnakeCoverageStrategy(SnakeConfig(line_width=1.0))
    assert not snake.is_targeting_final_waypoint()
    snake.initialize(0, Region((0, 0), (2, 2)), 1)
    for _ in range(3):
        snake.get_next_target_location(None)
        assert not snake.is_targeting_final_waypoint()
    last = snake.get_next_target_location(None)
    assert snake.is_targeting_final_waypoint()
    # Stays on the last waypoint once there
    assert snake.get_next_target_location(None) == last

    snake.initialize(0, Region((0, 0), (2, 2)), 1)
    assert not snake.is_targeting_final_waypoint()
    assert snake.get_next_target_location(None) == Position(1.5, 0)


# --- Random ---

def test_random_covers_whole_area_and_never_finishes():
    area = Region((0, 0), (10, 10))
    strategy = RandomCoverageStrategy(RandomConfig(seed=7))
    assert strategy.initialize(1, area, 3) == area
    for _ in range(200):
        assert area.contains(strategy.get_next_target_location(None))
        assert not strategy.is_targeting_final_waypoint()


def test_random_seed_is_reproducible():
    area = Region((0, 0), (1, 1))
    a = RandomCoverageStrategy(RandomConfig(seed=42))
    b = RandomCoverageStrategy(RandomConfig(seed=42))
    a.initialize(0, area, 1)
    b.initialize(0, area, 1)
    assert [a.get_next_target_location(None) for _ in range(5)] == \
           [b.get_next_target_location(None) for _ in range(5)]


# --- Inside-out ---

def test_inside_out_spirals_from_centre_to_bounds():
    strategy = InsideOutCoverageStrategy(InsideOutConfig(line_width=1.0))
    cell = strategy.initialize(0, Region((0, 0), (4, 4)), 1)
    waypoints = drain(strategy)
    assert len(waypoints) == 9
    assert waypoints[0] == cell.center
    # Ring 1, NW NE SE SW
    assert waypoints[1:5] == [Position(3, 1), Position(3, 3), Position(1, 3), Position(1, 1)]
    # Ring 2 sits on the cell corners
    assert waypoints[5:9] == [Position(4, 0), Position(4, 4), Position(0, 4), Position(0, 0)]
    assert all(cell.contains(w) for w in waypoints)


def test_inside_out_partitions_like_snake():
    strategy = InsideOutCoverageStrategy(InsideOutConfig(line_width=1.0))
    cell = strategy.initialize(1, Region((0, 0), (10, 10)), 2)
    assert cell == Region((5, 0), (0, 10))
    assert strategy.get_next_target_location(None) == Position(2.5, 5)


# --- Factory ---

def test_strategy_factories():
    """Verify all strategy factories can create their strategies"""
    assert set(list_available_strategies()) == {"snake", "random", "inside_out", "min_time"}

    s_snake = get_coverage_strategy("snake", SnakeConfig(line_width=2.0))
    s_random = get_coverage_strategy("random", RandomConfig(seed=1))
    s_inside = get_coverage_strategy("inside_out", InsideOutConfig())
    s_min_time = get_coverage_strategy("min_time", MinTimeConfig(lattice_spacing=0.5))

    assert isinstance(s_snake, SnakeCoverageStrategy)
    assert isinstance(s_random, RandomCoverageStrategy)
    assert isinstance(s_inside, InsideOutCoverageStrategy)
    assert isinstance(s_min_time, MinTimeCoverageStrategy)

    assert s_snake.config.line_width == 2.0
    assert s_min_time.config.lattice_spacing == 0.5


def test_unknown_strategy():
    with pytest.raises(ValueError):
        get_coverage_strategy("spiral", None)
