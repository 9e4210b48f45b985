"""
Rank & availability resolution.

Every drone runs this on its own snapshot of the blackboard. Because the
ordering is by numeric drone id, drones that see the same snapshot agree
on each other's rank without exchanging any message.
"""
from typing import Iterable, List, Optional, Tuple

from .blackboard import DroneRecord
from .errors import NotAvailable, StaleSnapshot


def _find(drones: Iterable[DroneRecord], drone_id: int) -> Optional[DroneRecord]:
    for d in drones:
        if d.id == drone_id:
            return d
    return None


def available_drones(self_id: int, drones: Iterable[DroneRecord]) -> List[DroneRecord]:
    """
    Drones that are mobile, not busy and assigned to the same search
    area as self_id, in ascending id order.
    """
    drones = list(drones)
    me = _find(drones, self_id)
    if me is None or me.assigned_search_area is None:
        return []
    area = me.assigned_search_area
    peers = [d for d in drones if d.mobile and not d.busy and d.assigned_search_area == area]
    return sorted(peers, key=lambda d: d.id)


def resolve(self_id: int, drones: Iterable[DroneRecord]) -> Tuple[int, int]:
    """
    Returns (rank, peer_count) for self_id.

    Raises NotAvailable if self_id is not part of its own availability
    set (e.g. it is briefly marked busy), rather than guessing a rank.
    """
    peers = available_drones(self_id, drones)
    ids = [d.id for d in peers]
    if self_id not in ids:
        raise NotAvailable(f"Drone {self_id} is not available for area coverage")
    return ids.index(self_id), len(ids)


def check_freshness(peers: Iterable[DroneRecord], now: float, max_age: float) -> None:
    """Raise StaleSnapshot if any peer has not been heard from within max_age."""
    stale = [d.id for d in peers if now - d.last_update > max_age]
    if stale:
        raise StaleSnapshot(stale, max_age)
