"""Geodetic primitives - shared across the whole system"""
import math
from pydantic import BaseModel, ConfigDict, model_validator

METERS_PER_DEG_LAT = 111_320.0


class Position(BaseModel):
    """2D geodetic position (latitude, longitude) in degrees"""
    model_config = ConfigDict(frozen=True)

    latitude: float = 0.0
    longitude: float = 0.0

    def __init__(self, latitude: float = 0.0, longitude: float = 0.0, **data):
        super().__init__(latitude=latitude, longitude=longitude, **data)

    def distance_to(self, other: 'Position') -> float:
        """Planar distance in degrees"""
        return math.hypot(self.latitude - other.latitude,
                          self.longitude - other.longitude)

    def distance_m_to(self, other: 'Position') -> float:
        """Approximate ground distance in meters (equirectangular)"""
        mid_lat = math.radians((self.latitude + other.latitude) / 2.0)
        dy = (self.latitude - other.latitude) * METERS_PER_DEG_LAT
        dx = (self.longitude - other.longitude) * METERS_PER_DEG_LAT * math.cos(mid_lat)
        return math.hypot(dx, dy)

    def __str__(self) -> str:
        return f"Position(lat={self.latitude:.7f}, lon={self.longitude:.7f})"


def _lat_lon(name: str, corner) -> tuple[float, float]:
    """(lat, lon) of a corner given as a Position, a dict or a pair. ValueError otherwise."""
    if isinstance(corner, Position):
        return corner.latitude, corner.longitude
    try:
        if isinstance(corner, dict):
            return float(corner["latitude"]), float(corner["longitude"])
        lat, lon = corner
        return float(lat), float(lon)
    except (KeyError, TypeError, ValueError):
        raise ValueError(f"{name} must be a position (latitude, longitude), got {corner!r}") from None


class Region(BaseModel):
    """
    Axis-aligned rectangle in lat/long space.

    Corners are normalized on construction: top_left is always the
    north-west corner and bottom_right the south-east corner, whatever
    order the caller gave them in.
    """
    model_config = ConfigDict(frozen=True)

    top_left: Position
    bottom_right: Position

    def __init__(self, top_left=None, bottom_right=None, **data):
        super().__init__(top_left=top_left, bottom_right=bottom_right, **data)

    @model_validator(mode="before")
    @classmethod
    def _normalize_corners(cls, data):
        if not isinstance(data, dict):
            return data
        lat_a, lon_a = _lat_lon("top_left", data.get("top_left"))
        lat_b, lon_b = _lat_lon("bottom_right", data.get("bottom_right"))
        return {
            "top_left": Position(max(lat_a, lat_b), min(lon_a, lon_b)),
            "bottom_right": Position(min(lat_a, lat_b), max(lon_a, lon_b)),
        }

    @property
    def north(self) -> float:
        return self.top_left.latitude

    @property
    def south(self) -> float:
        return self.bottom_right.latitude

    @property
    def west(self) -> float:
        return self.top_left.longitude

    @property
    def east(self) -> float:
        return self.bottom_right.longitude

    @property
    def height(self) -> float:
        """Latitude span in degrees"""
        return self.north - self.south

    @property
    def width(self) -> float:
        """Longitude span in degrees"""
        return self.east - self.west

    @property
    def center(self) -> Position:
        return Position((self.north + self.south) / 2.0, (self.west + self.east) / 2.0)

    def is_degenerate(self) -> bool:
        return self.height <= 0.0 or self.width <= 0.0

    def contains(self, position: Position) -> bool:
        """Boundary-inclusive containment check"""
        return (self.south <= position.latitude <= self.north and
                self.west <= position.longitude <= self.east)

    def __str__(self) -> str:
        return f"Region(nw={self.top_left}, se={self.bottom_right})"
