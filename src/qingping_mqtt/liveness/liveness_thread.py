""" Seguimiento de dispositivos vivos y barrido periódico de los silenciosos. """
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from qingping_mqtt.configuration.config_loader import LivenessConfiguration
from qingping_mqtt.metrics.sink import MetricsSink

logger = logging.getLogger(__name__)


@dataclass
class DeviceLivenessRecord:
    device_id: str
    last_seen: float
    topic: str = ""


class LivenessThread(threading.Thread):
    """
    Hilo que cada `sweep_period` segundos revisa la tabla de dispositivos.
    Un dispositivo sin mensajes durante más de `dead_threshold` segundos se
    considera muerto: sus gauges vuelven a cero y sale de la tabla.

    `touch` y el barrido comparten un único lock; el barrido lo mantiene
    durante la pasada completa y lo suelta mientras espera el siguiente tick.
    """

    def __init__(
        self,
        sink: MetricsSink,
        config: Optional[LivenessConfiguration] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(daemon=True, name="liveness-sweep")
        cfg = config or LivenessConfiguration()
        self.sink = sink
        self.dead_threshold = cfg.dead_threshold
        self.sweep_period = cfg.sweep_period
        self.clock = clock
        self.stop_event = threading.Event()
        self._lock = threading.Lock()
        self._devices: Dict[str, DeviceLivenessRecord] = {}

    def touch(self, device_id: str, topic: str = "") -> None:
        """Marca el dispositivo como visto ahora."""
        now = self.clock()
        with self._lock:
            record = self._devices.get(device_id)
            if record is None:
                self._devices[device_id] = DeviceLivenessRecord(device_id, now, topic)
                logger.debug("dispositivo nuevo: %s", device_id)
                return
            record.last_seen = now
            record.topic = topic

    def last_seen(self, device_id: str) -> Optional[float]:
        with self._lock:
            record = self._devices.get(device_id)
            return record.last_seen if record else None

    def device_count(self) -> int:
        with self._lock:
            return len(self._devices)

    def sweep(self) -> List[str]:
        """Una pasada del barrido. Devuelve los dispositivos dados por muertos."""
        now = self.clock()
        dead: List[str] = []
        with self._lock:
            for device_id, record in list(self._devices.items()):
                if now - record.last_seen <= self.dead_threshold:
                    continue
                try:
                    self.sink.reset_device(device_id, record.topic)
                except Exception:
                    # se reintenta en el siguiente tick
                    logger.exception("no se pudieron resetear las métricas de %s", device_id)
                    continue
                del self._devices[device_id]
                dead.append(device_id)
                logger.debug("dispositivo muerto: %s (%.1fs sin mensajes)", device_id, now - record.last_seen)
        return dead

    def run(self) -> None:
        logger.info(
            "barrido de dispositivos cada %.1fs (umbral %.1fs)",
            self.sweep_period,
            self.dead_threshold,
        )
        while not self.stop_event.wait(self.sweep_period):
            try:
                self.sweep()
            except Exception:
                logger.exception("error en el barrido de dispositivos")

    def stop(self) -> None:
        """ Detener el hilo de barrido. """
        self.stop_event.set()
