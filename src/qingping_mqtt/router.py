""" Procesado de cada mensaje publicado: sobre -> liveness -> métricas -> ack. """
from __future__ import annotations

import logging
from typing import Optional, Protocol, Union

from qingping_mqtt.errors import ParseError
from qingping_mqtt.metrics.sink import MetricsSink
from qingping_mqtt.models import HEARTBEAT_TYPE, Envelope, latest_reading, parse_envelope
from qingping_mqtt.mqtt.ack import AckSender

logger = logging.getLogger(__name__)


class Liveness(Protocol):
    def touch(self, device_id: str, topic: str = "") -> None: ...


class MessageRouter:
    """
    Punto de entrada del transporte. `handle` es síncrono y sólo hace trabajo
    en memoria, salvo encolar el ack en el cliente MQTT.
    """

    def __init__(self, sink: MetricsSink, liveness: Liveness, ack_sender: Optional[AckSender] = None) -> None:
        self.sink = sink
        self.liveness = liveness
        self.ack_sender = ack_sender

    def handle(self, topic: str, payload: Union[bytes, str]) -> Optional[Envelope]:
        logger.debug("mensaje recibido topic=%s payload=%r", topic, payload)

        try:
            msg = parse_envelope(topic, payload)
        except ParseError as e:
            logger.error("%s: %s", e, e.cause)
            self.sink.parse_error(topic)
            return None

        device_id = msg.device_id
        self.sink.message_received(msg.type, topic, device_id)

        if not msg.recognized:
            logger.debug("tipo de mensaje ignorado: %s", msg.type)
            return msg

        self.liveness.touch(device_id, topic)

        # heartbeat: sólo mantiene vivo al dispositivo
        if msg.type == HEARTBEAT_TYPE:
            return msg

        reading = latest_reading(msg.sensor_data)
        self.sink.set_readings(device_id, reading.channel_values(), topic)

        if msg.wants_ack and self.ack_sender is not None:
            self.ack_sender.send(topic, msg.id)

        return msg
