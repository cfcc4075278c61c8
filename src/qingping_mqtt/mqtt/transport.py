""" Cliente MQTT: recibe las publicaciones de los dispositivos y encola respuestas. """
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import paho.mqtt.client as mqtt

from qingping_mqtt.configuration.config_loader import MQTTConfiguration
from qingping_mqtt.errors import PublishError

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, bytes], Any]


class MQTTTransport:
    """
    Envoltorio sobre paho-mqtt (callback API v2). El bucle de red corre en el
    hilo de paho; cada mensaje se entrega al handler en ese mismo hilo.
    """

    def __init__(
        self,
        config: MQTTConfiguration,
        handler: Optional[MessageHandler] = None,
        client: Optional[mqtt.Client] = None,
    ) -> None:
        self.config = config
        self.handler = handler
        self.connected = False
        self._client = client or mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=config.client_id,
            protocol=mqtt.MQTTv311,
        )
        if config.username:
            self._client.username_pw_set(config.username, config.password)

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

    def start(self) -> None:
        """Conecta en segundo plano; paho reintenta si el broker no está."""
        logger.info("conectando a mqtt %s:%d", self.config.host, self.config.port)
        self._client.connect_async(self.config.host, self.config.port, keepalive=self.config.keepalive)
        self._client.loop_start()

    def connect(self) -> None:
        """Conexión bloqueante, para comandos de un solo uso."""
        self._client.connect(self.config.host, self.config.port, keepalive=self.config.keepalive)
        self._client.loop_start()

    def stop(self) -> None:
        try:
            self._client.disconnect()
        finally:
            self._client.loop_stop()
            self.connected = False
            logger.info("cliente mqtt detenido")

    def publish(self, topic: str, payload: bytes) -> mqtt.MQTTMessageInfo:
        """Encola el mensaje sin esperar al broker. Lanza PublishError si paho lo rechaza."""
        info = self._client.publish(topic, payload, qos=self.config.qos, retain=False)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(topic, f"publicación rechazada: {mqtt.error_string(info.rc)}")
        return info

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            self.connected = False
            logger.error("conexión mqtt rechazada: %s", reason_code)
            return
        self.connected = True
        logger.info("conectado al broker mqtt")
        for topic in self.config.topics:
            client.subscribe(topic, qos=self.config.qos)
            logger.info("suscrito a %s", topic)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self.connected = False
        logger.warning("desconectado del broker mqtt (%s)", reason_code)

    def _on_message(self, client, userdata, msg):
        if self.handler is None:
            return
        try:
            self.handler(msg.topic, msg.payload)
        except Exception:
            # un mensaje no debe tumbar el hilo de red
            logger.exception("error procesando mensaje de %s", msg.topic)
