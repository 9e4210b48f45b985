"""
Region partitioning: strips tile the search area with no gaps.
"""
import pytest

from swarm_coverage.core.errors import InvalidRegion
from swarm_coverage.core.partition import partition
from swarm_coverage.core.position import Region


def test_two_drones_split_square_north_to_south():
    region = Region((0, 0), (10, 10))
    assert partition(region, 0, 2) == Region((10, 0), (5, 10))
    assert partition(region, 1, 2) == Region((5, 0), (0, 10))


def test_strips_tile_region_without_gaps():
    region = Region((40.4430, -79.9450), (40.4440, -79.9435))
    for peer_count in range(1, 8):
        cells = [partition(region, rank, peer_count) for rank in range(peer_count)]
        assert cells[0].north == region.north
        assert cells[-1].south == region.south
        for upper, lower in zip(cells, cells[1:]):
            # Shared edge is the exact same float on both sides
            assert upper.south == lower.north
            assert upper.south > lower.south
        for cell in cells:
            assert cell.west == region.west
            assert cell.east == region.east
        assert sum(c.height for c in cells) == pytest.approx(region.height)


def test_longitude_axis_splits_west_to_east():
    region = Region((0, 0), (10, 10))
    cells = [partition(region, rank, 4, axis="longitude") for rank in range(4)]
    assert cells[0].west == 0
    assert cells[-1].east == 10
    for left, right in zip(cells, cells[1:]):
        assert left.east == right.west
    for cell in cells:
        assert cell.north == 10 and cell.south == 0
        assert cell.width == pytest.approx(2.5)


def test_partition_is_pure():
    region = Region((1.5, 2.5), (3.25, 7.75))
    assert partition(region, 2, 5) == partition(region, 2, 5)


def test_zero_peers_returns_whole_region():
    region = Region((0, 0), (10, 10))
    assert partition(region, 0, 0) == region


def test_degenerate_region_is_rejected():
    with pytest.raises(InvalidRegion):
        partition(Region((0, 0), (0, 10)), 0, 2)


def test_rank_out_of_range():
    region = Region((0, 0), (10, 10))
    with pytest.raises(ValueError):
        partition(region, 2, 2)
    with pytest.raises(ValueError):
        partition(region, -1, 2)


def test_unknown_axis():
    with pytest.raises(ValueError):
        partition(Region((0, 0), (10, 10)), 0, 2, axis="diagonal")
