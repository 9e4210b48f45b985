"""
Waypoint logger for writing machine-readable coverage logs (CSV).
"""
import csv
from pathlib import Path
from datetime import datetime

from .position import Position


class WaypointLogger:
    """Logs every waypoint a drone publishes to a CSV file."""

    header = [
        'timestamp',
        'drone_id',
        'phase',
        'algorithm',
        'rank',
        'peer_count',
        'target_lat', 'target_lon',
        'altitude',
    ]

    def __init__(self, log_dir: str = "logs/waypoints", drone_id: int = 0):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.log_file_path = self.log_dir / f"waypoints_drone{drone_id}_{timestamp}.csv"

        self.file_handle = open(self.log_file_path, 'w', newline='')
        self.writer = csv.DictWriter(self.file_handle, fieldnames=self.header)
        self.writer.writeheader()
        self.file_handle.flush()

    def log_waypoint(self, now: float, drone_id: int, phase: str, algorithm: str,
                     rank: int, peer_count: int, target: Position, altitude: float | None):
        """Write one waypoint row and flush it straight away."""
        if self.file_handle is None:
            return
        self.writer.writerow({
            'timestamp': f"{now:.3f}",
            'drone_id': drone_id,
            'phase': phase,
            'algorithm': algorithm,
            'rank': rank,
            'peer_count': peer_count,
            'target_lat': f"{target.latitude:.8f}",
            'target_lon': f"{target.longitude:.8f}",
            'altitude': f"{altitude:.2f}" if altitude is not None else 'N/A',
        })
        self.file_handle.flush()

    def close(self):
        """Closes the log file handle."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None
