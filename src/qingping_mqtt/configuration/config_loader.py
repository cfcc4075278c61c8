# src/qingping_mqtt/configuration/config_loader.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from qingping_mqtt.errors import ConfigurationError


@dataclass
class MQTTConfiguration:
    """ Conexión al broker y topics a escuchar. """
    host: str = "localhost"
    port: int = 1883
    client_id: str = "qingping-mqtt"
    username: Optional[str] = None
    password: Optional[str] = None
    topics: List[str] = field(default_factory=lambda: ["qingping/+/up"])
    qos: int = 0
    keepalive: int = 60


@dataclass
class HTTPConfiguration:
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class MetricsConfiguration:
    prefix: str = "qingping"
    gauge_topic_label: bool = False
    received_topic_label: bool = True
    received_device_label: bool = True


@dataclass
class LivenessConfiguration:
    """ Intervalo de heartbeat esperado y factores derivados. """
    heartbeat_interval: float = 60.0
    dead_multiplier: float = 3.0
    sweep_divisor: float = 10.0

    @property
    def dead_threshold(self) -> float:
        return self.heartbeat_interval * self.dead_multiplier

    @property
    def sweep_period(self) -> float:
        return self.heartbeat_interval / self.sweep_divisor


@dataclass
class Configuration:
    mqtt: MQTTConfiguration = field(default_factory=MQTTConfiguration)
    http: HTTPConfiguration = field(default_factory=HTTPConfiguration)
    metrics: MetricsConfiguration = field(default_factory=MetricsConfiguration)
    liveness: LivenessConfiguration = field(default_factory=LivenessConfiguration)
    log_level: str = "INFO"


def _ensure_str(d: Dict[str, Any], key: str, default: str) -> str:
    v = d.get(key, default)
    if not isinstance(v, str):
        v = str(v)
    return v


def _optional_str(d: Dict[str, Any], key: str) -> Optional[str]:
    v = d.get(key)
    return None if v is None else str(v)


def _ensure_bool(d: Dict[str, Any], key: str, default: bool) -> bool:
    v = d.get(key, default)
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


def _positive(value: Any, key: str, cast=float):
    try:
        v = cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key}: valor inválido {value!r}") from e
    if v <= 0:
        raise ConfigurationError(f"{key}: debe ser positivo, recibido {v}")
    return v


def parse_config(data: Dict[str, Any]) -> Configuration:
    """Construye la configuración a partir de un dict (p. ej. YAML ya cargado)."""
    mq = data.get("mqtt", {}) or {}
    ht = data.get("http", {}) or {}
    mt = data.get("metrics", {}) or {}
    lv = data.get("liveness", {}) or {}

    topics = mq.get("topics", ["qingping/+/up"])
    if isinstance(topics, str):
        topics = [topics]
    if not topics:
        raise ConfigurationError("mqtt.topics: se necesita al menos un topic")

    qos = mq.get("qos", 0)
    if qos not in (0, 1, 2):
        raise ConfigurationError(f"mqtt.qos: debe ser 0, 1 o 2, recibido {qos}")

    mqtt_cfg = MQTTConfiguration(
        host=_ensure_str(mq, "host", "localhost"),
        port=_positive(mq.get("port", 1883), "mqtt.port", int),
        client_id=_ensure_str(mq, "client_id", "qingping-mqtt"),
        username=_optional_str(mq, "username"),
        password=_optional_str(mq, "password"),
        topics=[str(t) for t in topics],
        qos=qos,
        keepalive=_positive(mq.get("keepalive", 60), "mqtt.keepalive", int),
    )

    http_cfg = HTTPConfiguration(
        host=_ensure_str(ht, "host", "0.0.0.0"),
        port=_positive(ht.get("port", 8080), "http.port", int),
    )

    metrics_cfg = MetricsConfiguration(
        prefix=_ensure_str(mt, "prefix", "qingping"),
        gauge_topic_label=_ensure_bool(mt, "gauge_topic_label", False),
        received_topic_label=_ensure_bool(mt, "received_topic_label", True),
        received_device_label=_ensure_bool(mt, "received_device_label", True),
    )

    liveness_cfg = LivenessConfiguration(
        heartbeat_interval=_positive(lv.get("heartbeat_interval", 60), "liveness.heartbeat_interval"),
        dead_multiplier=_positive(lv.get("dead_multiplier", 3), "liveness.dead_multiplier"),
        sweep_divisor=_positive(lv.get("sweep_divisor", 10), "liveness.sweep_divisor"),
    )

    return Configuration(
        mqtt=mqtt_cfg,
        http=http_cfg,
        metrics=metrics_cfg,
        liveness=liveness_cfg,
        log_level=_ensure_str(data, "log_level", "INFO").upper(),
    )


def load_config(path: Optional[str] = None) -> Configuration:
    """Carga el YAML indicado; sin ruta devuelve la configuración por defecto."""
    if path is None:
        return Configuration()

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config no encontrado: {p.resolve()}")

    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{p}: se esperaba un mapa en la raíz del YAML")
    return parse_config(data)
