""" Métricas Prometheus expuestas por el servicio. """
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol

from prometheus_client import CollectorRegistry, Counter, Gauge

from qingping_mqtt.configuration.config_loader import MetricsConfiguration
from qingping_mqtt.models import CHANNELS

logger = logging.getLogger(__name__)

# canal -> (sufijo del nombre, ayuda)
GAUGE_SPECS: Dict[str, tuple] = {
    "temperature": ("temperature_celsius", "Temperature in Celsius"),
    "humidity": ("humidity_percent", "Humidity in percent"),
    "co2": ("co2_ppm", "CO2 level in parts per million"),
    "pm1": ("pm1_ugm3", "PM1 particulate matter in ug/m3"),
    "pm25": ("pm25_ugm3", "PM2.5 particulate matter in ug/m3"),
    "pm10": ("pm10_ugm3", "PM10 particulate matter in ug/m3"),
    "tvoc": ("tvoc_ppb", "Total Volatile Organic Compounds in parts per billion"),
    "radon": ("radon_index", "Radon index"),
    "battery": ("battery_percent", "Battery level in percent"),
}


class MetricsSink(Protocol):
    """ Lo único que el núcleo necesita de un almacén de métricas. """

    def message_received(self, msg_type: str, topic: str, device_id: str) -> None: ...

    def parse_error(self, topic: str) -> None: ...

    def ack_sent(self, topic: str) -> None: ...

    def ack_error(self, topic: str) -> None: ...

    def set_readings(self, device_id: str, values: Dict[str, float], topic: str = "") -> None: ...

    def reset_device(self, device_id: str, topic: str = "") -> None: ...


class PrometheusSink:
    """
    Contadores y gauges registrados en un CollectorRegistry propio.
    Los labels opcionales (topic, mac) se fijan al construir y no cambian.
    """

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        config: Optional[MetricsConfiguration] = None,
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.config = config or MetricsConfiguration()
        prefix = self.config.prefix

        self._received_labels: List[str] = ["type"]
        if self.config.received_topic_label:
            self._received_labels.append("topic")
        if self.config.received_device_label:
            self._received_labels.append("mac")

        self._gauge_labels: List[str] = ["mac"]
        if self.config.gauge_topic_label:
            self._gauge_labels.append("topic")

        self.messages_received = Counter(
            f"{prefix}_mqtt_messages_received",
            "Total number of MQTT messages received by message type",
            self._received_labels,
            registry=self.registry,
        )
        self.acks_sent = Counter(
            f"{prefix}_mqtt_acks_sent",
            "Total number of acknowledgments sent to devices",
            ["topic"],
            registry=self.registry,
        )
        self.parse_errors = Counter(
            f"{prefix}_mqtt_parse_errors",
            "Total number of message parsing errors",
            ["topic"],
            registry=self.registry,
        )
        self.ack_errors = Counter(
            f"{prefix}_mqtt_ack_errors",
            "Total number of acknowledgment send errors",
            ["topic"],
            registry=self.registry,
        )
        self.gauges: Dict[str, Gauge] = {
            channel: Gauge(f"{prefix}_{suffix}", help_text, self._gauge_labels, registry=self.registry)
            for channel, (suffix, help_text) in GAUGE_SPECS.items()
        }

    def _gauge_label_values(self, device_id: str, topic: str) -> List[str]:
        if self.config.gauge_topic_label:
            return [device_id, topic]
        return [device_id]

    def message_received(self, msg_type: str, topic: str, device_id: str) -> None:
        values = {"type": msg_type, "topic": topic, "mac": device_id}
        self.messages_received.labels(*[values[name] for name in self._received_labels]).inc()

    def parse_error(self, topic: str) -> None:
        self.parse_errors.labels(topic).inc()

    def ack_sent(self, topic: str) -> None:
        self.acks_sent.labels(topic).inc()

    def ack_error(self, topic: str) -> None:
        self.ack_errors.labels(topic).inc()

    def set_readings(self, device_id: str, values: Dict[str, float], topic: str = "") -> None:
        labels = self._gauge_label_values(device_id, topic)
        for channel in CHANNELS:
            self.gauges[channel].labels(*labels).set(values.get(channel, 0.0))

    def reset_device(self, device_id: str, topic: str = "") -> None:
        self.set_readings(device_id, {}, topic)
        logger.debug("métricas a cero para %s", device_id)
