""" Comando para publicar un mensaje de prueba en el broker, como lo haría un dispositivo. """
import logging
from typing import Optional

from qingping_mqtt.configuration.config_loader import load_config
from qingping_mqtt.errors import PublishError
from qingping_mqtt.mqtt.transport import MQTTTransport

logger = logging.getLogger(__name__)


def execute_publish_test(topic: str, payload: str, config_path: Optional[str] = None, timeout: float = 5.0) -> bool:
    """ Publica `payload` en `topic` y espera la confirmación del broker. """
    cfg = load_config(config_path)
    cfg.mqtt.client_id = f"{cfg.mqtt.client_id}-pub"
    transport = MQTTTransport(cfg.mqtt)
    try:
        transport.connect()
        info = transport.publish(topic, payload.encode("utf-8"))
        info.wait_for_publish(timeout=timeout)
        ok = info.is_published()
    except (PublishError, OSError, RuntimeError, ValueError) as e:
        logger.error("%s", e)
        ok = False
    finally:
        transport.stop()
    logger.info("%s -> %s", "OK" if ok else "ERR", topic)
    return ok
