"""
Shared knowledge blackboard.

Flat, dotted keys with per-key last-writer-wins semantics. Each entry
carries the timestamp of the write that produced it; merges coming from
peers only replace an entry when they are newer. The replication layer
that moves entries between drones is not part of this module (see
comms.py for the MQTT adapter).
"""
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel
from .position import Position, Region

# --- Key layout ---

LOCATION = "location"
ALTITUDE = "altitude"
MOBILE = "mobile"
BUSY = "busy"
ASSIGNED_SEARCH_AREA = "assigned_search_area"
ASSIGNED_ALTITUDE = "assigned_altitude"
COVERAGE_REQUESTED = "area_coverage.requested"
COVERAGE_GENERATION = "area_coverage.generation"
CELL_INITIALIZED = "area_coverage.cell.initialized"
CELL = "area_coverage.cell"
TARGET = "area_coverage.target"
AVAILABLE_TOTAL = "area_coverage.available.total"
AVAILABLE_MY_IDX = "area_coverage.available.my_idx"
MOVEMENT_REQUESTED = "movement.requested"
MOVEMENT_TARGET = "movement.target"
MOVEMENT_TARGET_ALT = "movement.target_altitude"

SWARM_MIN_ALTITUDE = "swarm.min_altitude"
SWARM_LINE_WIDTH = "swarm.line_width"
SWARM_VERTICAL_SEPARATION = "swarm.vertical_separation"


def device_key(drone_id: int, field: str) -> str:
    return f"device.{drone_id}.{field}"


def search_area_key(area_id: int) -> str:
    return f"search_area.{area_id}.region"


def lattice_prefix(area_id: int) -> str:
    return f"lattice.{area_id}."


def lattice_key(area_id: int, row: int, col: int) -> str:
    return f"{lattice_prefix(area_id)}{row}.{col}"


class DroneRecord(BaseModel):
    """Read-only view of one drone, assembled from its device.* keys."""
    id: int
    location: Position = Position()
    mobile: bool = False
    busy: bool = False
    assigned_search_area: Optional[int] = None
    last_update: float = 0.0


class Blackboard:
    """In-memory key/value store with per-key last-writer-wins."""

    def __init__(self, clock=time.time):
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.RLock()
        self._clock = clock

    @contextmanager
    def atomic(self) -> Iterator['Blackboard']:
        """Hold the blackboard so a read-then-write sequence sees one snapshot."""
        with self._lock:
            yield self

    def set(self, key: str, value: Any, timestamp: Optional[float] = None) -> None:
        """Local write. Always wins, stamped with the current time."""
        ts = self._clock() if timestamp is None else timestamp
        with self._lock:
            self._entries[key] = (value, ts)

    def merge(self, key: str, value: Any, timestamp: float) -> bool:
        """Apply a remote write. Returns True if it replaced the local entry."""
        with self._lock:
            current = self._entries.get(key)
            if current is not None and current[1] >= timestamp:
                return False
            self._entries[key] = (value, timestamp)
            return True

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
        return default if entry is None else entry[0]

    def timestamp(self, key: str) -> Optional[float]:
        with self._lock:
            entry = self._entries.get(key)
        return None if entry is None else entry[1]

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def items(self, prefix: str = "") -> List[Tuple[str, Any, float]]:
        """(key, value, timestamp) for every key starting with prefix."""
        with self._lock:
            return [(k, v, ts) for k, (v, ts) in self._entries.items() if k.startswith(prefix)]

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {k: v for k, (v, _) in self._entries.items()}

    # --- Typed views ---

    def device_ids(self) -> List[int]:
        ids = set()
        for key, _, _ in self.items("device."):
            token = key.split(".")[1]
            if token.isdigit():
                ids.add(int(token))
        return sorted(ids)

    def read_drone(self, drone_id: int) -> DroneRecord:
        prefix = f"device.{drone_id}."
        entries = self.items(prefix)
        fields = {k[len(prefix):]: v for k, v, _ in entries}
        return DroneRecord(
            id=drone_id,
            location=fields.get(LOCATION) or Position(),
            mobile=bool(fields.get(MOBILE, False)),
            busy=bool(fields.get(BUSY, False)),
            assigned_search_area=fields.get(ASSIGNED_SEARCH_AREA),
            last_update=max((ts for _, _, ts in entries), default=0.0),
        )

    def read_drones(self) -> List[DroneRecord]:
        with self._lock:
            return [self.read_drone(i) for i in self.device_ids()]

    def search_area(self, area_id: int) -> Optional[Region]:
        return self.get(search_area_key(area_id))

    def lattice_visits(self, area_id: int) -> Dict[Tuple[int, int], float]:
        """Last-visited timestamps published for an area's lattice."""
        prefix = lattice_prefix(area_id)
        visits = {}
        for key, value, _ in self.items(prefix):
            row, col = key[len(prefix):].split(".")
            visits[(int(row), int(col))] = float(value)
        return visits
