"""
MQTT transport for the shared blackboard.

`MqttClient` wraps paho's threaded network loop for asyncio code, and
`BlackboardBridge` mirrors blackboard entries between drones over it.
The bridge only moves entries around; merging is plain per-key
last-writer-wins on the receiving blackboard.
"""
import asyncio
import json
from enum import Enum
from typing import Any, AsyncGenerator, Dict, Iterable, List, Optional, Tuple

import paho.mqtt.client as mqtt

from .blackboard import Blackboard, device_key
from .config_models import MqttConfig
from .logger import MissionLogger
from .position import Position, Region

BLACKBOARD_TOPIC = "blackboard"


class MqttClient:
    """
    Async wrapper for the Paho MQTT client.

    Paho calls back on its own network thread. Received messages are
    handed to the event loop that called connect() and queued on
    `incoming_messages`. Subscriptions are remembered and replayed after
    every (re)connect.
    """

    def __init__(self, config: MqttConfig, client_id: str, logger: MissionLogger | None = None):
        self.config = config
        self.client_id = client_id
        self.logger = logger

        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id
        )
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._subscriptions: List[str] = []
        self.incoming_messages: asyncio.Queue = asyncio.Queue()
        self.is_connected = False

    def _log(self, message: str, level: str = "info"):
        if self.logger:
            self.logger.log(f"[MQTT] {message}", level)
        else:
            print(f"[{self.client_id} MQTT] {message}")

    def _full_topic(self, topic: str) -> str:
        return f"{self.config.base_topic}/{topic}"

    def _short_topic(self, topic: str) -> str:
        return topic.removeprefix(f"{self.config.base_topic}/")

    # --- Paho callbacks (network thread) ---

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        self.is_connected = reason_code == 0
        if not self.is_connected:
            self._log(f"Broker refused connection: {reason_code}", "error")
            return
        self._log(f"Connected to {self.config.host}:{self.config.port}")
        for topic in self._subscriptions:
            client.subscribe(topic, qos=self.config.qos)

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        self._log(f"Disconnected: {reason_code}", "warning")
        self.is_connected = False

    def _on_message(self, client, userdata, msg):
        try:
            payload = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            self._log(f"Dropping non-JSON message on {msg.topic}", "warning")
            return
        item = (self._short_topic(msg.topic), payload)
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.incoming_messages.put_nowait, item)
        else:
            self.incoming_messages.put_nowait(item)

    # --- asyncio API ---

    async def connect(self) -> bool:
        """Connect and wait up to connect_timeout_s for the broker to accept."""
        self._loop = asyncio.get_running_loop()
        self._log(f"Connecting to {self.config.host}:{self.config.port}")
        try:
            self._client.connect(self.config.host, self.config.port, self.config.keepalive)
        except OSError as e:
            self._log(f"Connection error: {e}", "error")
            return False
        self._client.loop_start()

        deadline = self._loop.time() + self.config.connect_timeout_s
        while not self.is_connected and self._loop.time() < deadline:
            await asyncio.sleep(0.1)
        if not self.is_connected:
            self._log("Connection timed out", "error")
            self._client.loop_stop()
        return self.is_connected

    async def disconnect(self):
        self._log("Disconnecting")
        self._client.disconnect()
        self._client.loop_stop()
        self.is_connected = False

    async def publish(self, topic: str, payload: dict, retain: bool = False) -> bool:
        """Publish a JSON payload under base_topic. False if there is no connection."""
        if not self.is_connected:
            self._log(f"Not connected, dropping publish to {topic}", "debug")
            return False
        self._client.publish(self._full_topic(topic), json.dumps(payload), qos=self.config.qos, retain=retain)
        return True

    async def subscribe(self, topic: str):
        """Subscribe now if connected; either way the topic is kept for reconnects."""
        full_topic = self._full_topic(topic)
        if full_topic not in self._subscriptions:
            self._subscriptions.append(full_topic)
        if self.is_connected:
            self._log(f"Subscribing to {full_topic}")
            self._client.subscribe(full_topic, qos=self.config.qos)

    async def listen(self) -> AsyncGenerator[Tuple[str, dict], None]:
        """Yield (topic relative to base_topic, payload) as messages arrive."""
        while True:
            yield await self.incoming_messages.get()


# --- Wire encoding of blackboard values ---

def encode_value(value: Any) -> Any:
    """JSON-safe form of a blackboard value. Geometry carries a type tag."""
    if isinstance(value, Region):
        return {
            "__type__": "region",
            "top_left": [value.top_left.latitude, value.top_left.longitude],
            "bottom_right": [value.bottom_right.latitude, value.bottom_right.longitude],
        }
    if isinstance(value, Position):
        return {"__type__": "position", "latitude": value.latitude, "longitude": value.longitude}
    if isinstance(value, Enum):
        return value.value
    return value


def decode_value(data: Any) -> Any:
    if isinstance(data, dict):
        kind = data.get("__type__")
        if kind == "region":
            return Region(tuple(data["top_left"]), tuple(data["bottom_right"]))
        if kind == "position":
            return Position(data["latitude"], data["longitude"])
    return data


def encode_entry(key: str, value: Any, timestamp: float, origin: str) -> Tuple[str, dict]:
    """(topic, payload) for one blackboard entry."""
    return f"{BLACKBOARD_TOPIC}/{key}", {
        "value": encode_value(value),
        "timestamp": timestamp,
        "origin": origin,
    }


def decode_entry(topic: str, payload: dict) -> Tuple[str, Any, float, str]:
    """(key, value, timestamp, origin) from a bridged message."""
    key = topic.removeprefix(f"{BLACKBOARD_TOPIC}/")
    return key, decode_value(payload.get("value")), float(payload["timestamp"]), str(payload.get("origin", ""))


class BlackboardBridge:
    """
    Mirrors selected blackboard entries over MQTT.

    A drone shares its own device.<id>.* keys and the MinTime lattice;
    an operator station would share search areas and swarm parameters.
    """

    def __init__(self, blackboard: Blackboard, mqtt_client: MqttClient, origin: str,
                 prefixes: Iterable[str]):
        self.blackboard = blackboard
        self.mqtt = mqtt_client
        self.origin = origin
        self.prefixes = tuple(prefixes)
        self._sent: Dict[str, float] = {}

    @classmethod
    def for_drone(cls, blackboard: Blackboard, mqtt_client: MqttClient, drone_id: int):
        return cls(blackboard, mqtt_client, f"drone{drone_id}",
                   prefixes=(device_key(drone_id, ""), "lattice."))

    def pending(self):
        """Entries under the shared prefixes written since they were last sent."""
        changed = []
        for prefix in self.prefixes:
            for key, value, ts in self.blackboard.items(prefix):
                if self._sent.get(key, float("-inf")) < ts:
                    changed.append((key, value, ts))
        return changed

    async def publish_changes(self) -> int:
        """Send pending entries. Anything not sent is retried on the next call."""
        count = 0
        for key, value, ts in self.pending():
            topic, payload = encode_entry(key, value, ts, self.origin)
            if not await self.mqtt.publish(topic, payload):
                break
            self._sent[key] = ts
            count += 1
        return count

    def apply(self, topic: str, payload: dict) -> bool:
        """Merge one incoming entry. Returns True if it changed the blackboard."""
        if not topic.startswith(f"{BLACKBOARD_TOPIC}/"):
            return False
        key, value, ts, origin = decode_entry(topic, payload)
        if origin == self.origin:
            return False
        applied = self.blackboard.merge(key, value, ts)
        if applied:
            # Don't echo a peer's entry back to the swarm
            self._sent[key] = ts
        return applied

    async def _publisher(self, interval_s: float):
        while True:
            await self.publish_changes()
            await asyncio.sleep(interval_s)

    async def _listener(self):
        async for topic, payload in self.mqtt.listen():
            try:
                self.apply(topic, payload)
            except (KeyError, TypeError, ValueError) as e:
                print(f"[{self.origin} bridge] Dropping malformed entry on {topic}: {e}")

    async def run(self, interval_s: float = 0.5):
        await self.mqtt.subscribe(f"{BLACKBOARD_TOPIC}/#")
        await asyncio.gather(self._publisher(interval_s), self._listener())
