"""
Coverage mission logger with incremental, per-drone log files
"""

import time
from pathlib import Path
from datetime import datetime

LEVEL_COLORS = {
    'critical': '\033[95m',  # Magenta
    'error': '\033[91m',     # Red
    'warning': '\033[93m',   # Yellow
    'info': '\033[0m',       # Default
    'debug': '\033[90m'      # Gray
}
RESET = '\033[0m'


class MissionLogger:
    """Mission logger writing timestamped log files for one drone"""

    def __init__(self, log_dir: str = "logs", max_logs: int = 0, drone_id: str = "drone",
                 log_to_console: bool = True):
        """
        Initialize logger with log directory

        Args:
            log_dir: Directory to store log files
            max_logs: Maximum number of logs to keep (0 = unlimited)
            drone_id: The ID of the drone for log naming
            log_to_console: Echo every line to stdout as well
        """
        self.log_dir = Path(log_dir)
        self.max_logs = max_logs
        self.drone_id = str(drone_id)
        self.log_to_console = log_to_console

        self.log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        mission_number = self._get_next_mission_number()
        self.log_file = self.log_dir / f"drone{self.drone_id}_coverage_{mission_number:04d}_{timestamp}.log"
        self.index_file = self.log_dir / f"drone{self.drone_id}_coverage_index.txt"

        self._write_header()

        if self.max_logs > 0:
            self._cleanup_old_logs()

    def _existing_logs(self):
        return sorted(self.log_dir.glob(f"drone{self.drone_id}_coverage_*.log"))

    def _get_next_mission_number(self) -> int:
        """Get the next sequential mission number"""
        log_files = self._existing_logs()
        if not log_files:
            return 1
        # "droneN_coverage_NNNN_timestamp"
        try:
            return int(log_files[-1].stem.split('_')[2]) + 1
        except (IndexError, ValueError):
            return 1

    def _write_header(self):
        header = f"""
{'='*70}
COVERAGE LOG (Drone: {self.drone_id})
{'='*70}
Log File: {self.log_file.name}
Start Time: {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}
{'='*70}

"""
        with open(self.log_file, 'w') as f:
            f.write(header)

    def _cleanup_old_logs(self):
        """Remove old log files if we exceed max_logs"""
        log_files = self._existing_logs()
        if len(log_files) > self.max_logs:
            for old_log in log_files[:-self.max_logs]:
                old_log.unlink()

    def log(self, message: str, level: str = "info"):
        """Log a message with the specified level"""
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
        log_line = f"[{timestamp}] [{level.upper()}] [drone {self.drone_id}] {message}"

        with open(self.log_file, "a") as f:
            f.write(log_line + "\n")

        if self.log_to_console:
            color = LEVEL_COLORS.get(level, LEVEL_COLORS['info'])
            print(f"{color}{log_line}{RESET}")

    def log_summary(self, summary_data: dict):
        """Log mission summary and update index"""
        self.log("=" * 70)
        self.log("COVERAGE SUMMARY")
        for key, value in summary_data.items():
            self.log(f"{key}: {value}")
        self.log("=" * 70)
        self._update_index(summary_data)

    def _update_index(self, summary_data: dict):
        index_line = (
            f"{datetime.now().strftime('%Y-%m-%d %H:%M:%S')} | "
            f"{self.log_file.name} | "
            f"Algorithm: {summary_data.get('Algorithm', 'N/A')} | "
            f"Waypoints: {summary_data.get('Waypoints', 'N/A')} | "
            f"Cell: {summary_data.get('Cell', 'N/A')}\n"
        )

        if not self.index_file.exists():
            with open(self.index_file, 'w') as f:
                f.write(f"COVERAGE INDEX (Drone: {self.drone_id})\n")
                f.write("=" * 100 + "\n")

        with open(self.index_file, 'a') as f:
            f.write(index_line)

    def get_log_path(self) -> Path:
        return self.log_file
