""" Envío de acks (tipo 18) al topic /down del dispositivo. """
from __future__ import annotations

import logging
import time
from typing import Callable

from pydantic_core import PydanticSerializationError

from qingping_mqtt.errors import AckEncodeError, AckPublishError, PublishError
from qingping_mqtt.metrics.sink import MetricsSink
from qingping_mqtt.models import AckMessage

logger = logging.getLogger(__name__)

# publish(topic, payload); lanza PublishError si el transporte no lo acepta
PublishFunc = Callable[[str, bytes], None]


def down_topic(up_topic: str) -> str:
    # p. ej. qingping/AABBCC/up -> qingping/AABBCC/down
    if up_topic.endswith("/up"):
        return up_topic[: -len("/up")] + "/down"
    return up_topic.replace("/up", "/down", 1)


class AckSender:
    """
    Publica el ack sin reintentos. Los fallos se registran y cuentan,
    nunca se propagan al procesado del mensaje original.
    """

    def __init__(self, publish: PublishFunc, sink: MetricsSink, clock: Callable[[], float] = time.time) -> None:
        self.publish = publish
        self.sink = sink
        self.clock = clock

    def encode(self, topic: str, msg_id: int) -> bytes:
        try:
            return AckMessage(ack_id=msg_id, code=0, timestamp=int(self.clock())).to_payload()
        except (ValueError, TypeError, PydanticSerializationError) as e:
            raise AckEncodeError(topic, "no se pudo serializar el ack", e) from e

    def send(self, up_topic: str, msg_id: int) -> bool:
        topic = down_topic(up_topic)
        try:
            payload = self.encode(topic, msg_id)
        except AckEncodeError as e:
            logger.error("%s: %s", e, e.cause)
            self.sink.ack_error(topic)
            return False

        try:
            self.publish(topic, payload)
        except (PublishError, OSError, ValueError) as e:
            logger.error("%s: %s", AckPublishError(topic, "no se pudo publicar el ack", e), e)
            self.sink.ack_error(topic)
            return False

        self.sink.ack_sent(up_topic)
        logger.debug("ack enviado: msg_id=%d topic=%s", msg_id, topic)
        return True
