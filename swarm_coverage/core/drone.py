"""
Flight actuation interface and a simulated implementation.

The coverage controller never flies anything itself: it writes a
movement command to the blackboard and a flight controller picks it up.
"""

import asyncio
import math
from enum import Enum

from .blackboard import (
    ALTITUDE, BUSY, LOCATION, MOBILE, MOVEMENT_REQUESTED, MOVEMENT_TARGET,
    MOVEMENT_TARGET_ALT, Blackboard, device_key,
)
from .position import METERS_PER_DEG_LAT, Position


class MovementCommand(str, Enum):
    """Commands handed to the flight-actuation layer."""
    MOVE_TO_GPS = "move_to_gps"
    MOVE_TO_ALTITUDE = "move_to_altitude"
    TAKEOFF = "takeoff"
    LAND = "land"


class SimulatedFlightController:
    """
    Simulation of the flight-actuation collaborator for one drone.
    Consumes movement commands from the blackboard and publishes the
    resulting location and altitude back to it.
    """

    def __init__(self, drone_id: int, blackboard: Blackboard, start: Position = Position(),
                 cruise_speed_m_s: float = 5.0, climb_rate_m_s: float = 1.0,
                 takeoff_altitude: float = 2.0):
        self.drone_id = drone_id
        self.blackboard = blackboard
        self.position = start
        self.altitude = 0.0
        self.cruise_speed_m_s = cruise_speed_m_s
        self.climb_rate_m_s = climb_rate_m_s
        self.takeoff_altitude = takeoff_altitude

    def _key(self, field: str) -> str:
        return device_key(self.drone_id, field)

    def connect(self, mobile: bool = True):
        """Announce this drone on the blackboard."""
        self.blackboard.set(self._key(MOBILE), mobile)
        self.blackboard.set(self._key(BUSY), False)
        self._publish()

    def _publish(self):
        self.blackboard.set(self._key(LOCATION), self.position)
        self.blackboard.set(self._key(ALTITUDE), self.altitude)

    def _fly_towards(self, target: Position, dt: float):
        step_m = self.cruise_speed_m_s * dt
        dist_m = self.position.distance_m_to(target)
        if dist_m <= step_m:
            self.position = target
            return
        meters_per_deg_lon = METERS_PER_DEG_LAT * math.cos(math.radians(self.position.latitude))
        dy = (target.latitude - self.position.latitude) * METERS_PER_DEG_LAT
        dx = (target.longitude - self.position.longitude) * meters_per_deg_lon
        frac = step_m / dist_m
        self.position = Position(
            self.position.latitude + frac * dy / METERS_PER_DEG_LAT,
            self.position.longitude + frac * dx / meters_per_deg_lon,
        )

    def _climb_towards(self, altitude: float, dt: float):
        step = self.climb_rate_m_s * dt
        delta = altitude - self.altitude
        self.altitude = altitude if abs(delta) <= step else self.altitude + math.copysign(step, delta)

    def update(self, dt: float):
        """Advance the simulation by dt seconds according to the pending command."""
        command = self.blackboard.get(self._key(MOVEMENT_REQUESTED))
        if command is not None:
            command = MovementCommand(command)

        target_alt = self.blackboard.get(self._key(MOVEMENT_TARGET_ALT))

        if command == MovementCommand.MOVE_TO_GPS:
            target = self.blackboard.get(self._key(MOVEMENT_TARGET))
            if target is not None:
                self._fly_towards(target, dt)
            # Keep settling onto the assigned layer while cruising
            if target_alt is not None:
                self._climb_towards(float(target_alt), dt)
        elif command == MovementCommand.MOVE_TO_ALTITUDE:
            if target_alt is not None:
                self._climb_towards(float(target_alt), dt)
        elif command == MovementCommand.TAKEOFF:
            self._climb_towards(self.takeoff_altitude, dt)
        elif command == MovementCommand.LAND:
            self._climb_towards(0.0, dt)

        self._publish()

    async def run(self, tick_s: float = 1.0):
        """Simulation loop: one update per tick, in simulated seconds."""
        while True:
            self.update(tick_s)
            await asyncio.sleep(tick_s)
