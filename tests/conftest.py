import json
from typing import Any, Dict, List, Optional, Tuple

import pytest
from prometheus_client import CollectorRegistry

from qingping_mqtt.configuration.config_loader import LivenessConfiguration
from qingping_mqtt.liveness.liveness_thread import LivenessThread
from qingping_mqtt.metrics.sink import PrometheusSink
from qingping_mqtt.mqtt.ack import AckSender
from qingping_mqtt.router import MessageRouter

HEARTBEAT_INTERVAL = 60.0
ACK_TIME = 1594815555


class FakeClock:
    """Reloj manual para el liveness."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingPublisher:
    """Sustituye a MQTTTransport.publish y guarda lo publicado."""

    def __init__(self) -> None:
        self.published: List[Tuple[str, Dict[str, Any]]] = []
        self.error: Optional[Exception] = None

    def __call__(self, topic: str, payload: bytes) -> None:
        if self.error is not None:
            raise self.error
        self.published.append((topic, json.loads(payload)))


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def sink(registry) -> PrometheusSink:
    return PrometheusSink(registry)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def liveness(sink, clock) -> LivenessThread:
    return LivenessThread(sink, LivenessConfiguration(heartbeat_interval=HEARTBEAT_INTERVAL), clock=clock)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def ack_sender(publisher, sink) -> AckSender:
    return AckSender(publisher, sink, clock=lambda: ACK_TIME)


@pytest.fixture
def router(sink, liveness, ack_sender) -> MessageRouter:
    return MessageRouter(sink, liveness, ack_sender)


@pytest.fixture
def gauge(registry):
    """gauge("temperature_celsius", "AA") -> valor actual o None."""
    def read(suffix: str, mac: str, **labels: str) -> Optional[float]:
        return registry.get_sample_value(f"qingping_{suffix}", {"mac": mac, **labels})
    return read


@pytest.fixture
def counter(registry):
    """counter("acks_sent", topic="t/up") -> valor actual o None."""
    def read(name: str, **labels: str) -> Optional[float]:
        return registry.get_sample_value(f"qingping_mqtt_{name}_total", labels)
    return read


def envelope(**fields: Any) -> bytes:
    return json.dumps(fields).encode("utf-8")


@pytest.fixture
def make_envelope():
    return envelope
