"""
Pydantic models for validating the mission_config.yaml file.
"""
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .position import Position, Region

CoverageAlgorithm = Literal["snake", "random", "inside_out", "min_time"]

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "mission_config.yaml"

# --- Comms Config ---

class MqttConfig(BaseModel):
    host: str = "localhost"
    port: int = 1883
    base_topic: str = "swarm"
    keepalive: int = 60
    qos: Literal[0, 1, 2] = 1
    connect_timeout_s: float = Field(default=5.0, gt=0)
    sync_interval_s: float = Field(default=0.5, gt=0)  # blackboard bridge publish period

# --- Logging ---

class LoggingConfig(BaseModel):
    log_dir: str = "logs"
    max_logs: int = 50
    log_to_console: bool = True
    waypoint_log: bool = False

# --- Search Area ---

class SearchAreaConfig(BaseModel):
    id: int = 0
    region: Region

# --- Area Coverage (driver) ---

class AreaCoverageConfig(BaseModel):
    algorithm: CoverageAlgorithm = "snake"
    min_altitude: float = 2.0
    vertical_separation: float = Field(default=0.5, gt=0)
    reached_accuracy: float = Field(default=0.0000050, gt=0)
    tick_interval_s: float = Field(default=1.0, gt=0)
    stale_after_s: float = Field(default=10.0, gt=0)
    # Pattern to switch to once a finite pattern is done (None = stop)
    fallback_algorithm: Optional[CoverageAlgorithm] = None

# --- Strategy Models ---

class SnakeConfig(BaseModel):
    line_width: float = Field(default=0.0001, gt=0)  # degrees between legs
    partition_axis: Literal["latitude", "longitude"] = "latitude"

class InsideOutConfig(BaseModel):
    line_width: float = Field(default=0.0001, gt=0)
    partition_axis: Literal["latitude", "longitude"] = "latitude"

class RandomConfig(BaseModel):
    seed: Optional[int] = None

class MinTimeConfig(BaseModel):
    """Tuning for the revisit-time (MinTime) patrol."""
    lattice_spacing: float = Field(default=0.0001, gt=0)  # degrees
    staleness_weight: float = 1.0   # utility per second of staleness
    travel_weight: float = 1.0      # utility cost per second of travel
    cruise_speed_m_s: float = Field(default=5.0, gt=0)
    claim_discount: float = 60.0    # penalty for a cell a lower-priority peer is heading to

# --- Simulation ---

class SimulationConfig(BaseModel):
    cruise_speed_m_s: float = Field(default=5.0, gt=0)
    climb_rate_m_s: float = Field(default=1.0, gt=0)
    tick_interval_s: float = Field(default=1.0, gt=0)

class DroneConfig(BaseModel):
    id: int
    type: Literal["simulated"] = "simulated"
    start: Position = Position()

# --- Top-Level Settings Model ---

class Settings(BaseModel):
    """The root model for the entire mission_config.yaml."""
    mqtt: MqttConfig = Field(default_factory=MqttConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    area_coverage: AreaCoverageConfig = Field(default_factory=AreaCoverageConfig)
    search_area: SearchAreaConfig
    snake: SnakeConfig = Field(default_factory=SnakeConfig)
    inside_out: InsideOutConfig = Field(default_factory=InsideOutConfig)
    random: RandomConfig = Field(default_factory=RandomConfig)
    min_time: MinTimeConfig = Field(default_factory=MinTimeConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    drones: List[DroneConfig] = Field(default_factory=list)

    def strategy_config(self, algorithm: str) -> BaseModel:
        """The config block that belongs to a coverage algorithm."""
        return getattr(self, algorithm)


def load_settings(config_path: str | Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Load and validate configuration. Raises pydantic.ValidationError on bad input."""
    with open(config_path, 'r') as f:
        config_data = yaml.safe_load(f)
    return Settings(**config_data)
