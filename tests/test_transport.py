"""Tests del cliente MQTT con paho simulado."""

from unittest.mock import MagicMock

import paho.mqtt.client as mqtt
import pytest

from qingping_mqtt.configuration.config_loader import MQTTConfiguration
from qingping_mqtt.errors import PublishError
from qingping_mqtt.mqtt.transport import MQTTTransport


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def config():
    return MQTTConfiguration(topics=["qingping/+/up", "other/+/up"], qos=1)


def message(topic, payload):
    msg = MagicMock()
    msg.topic = topic
    msg.payload = payload
    return msg


class TestMQTTTransport:

    def test_callbacks_registered(self, client, config):
        transport = MQTTTransport(config, client=client)
        assert client.on_message == transport._on_message
        assert client.on_connect == transport._on_connect
        client.username_pw_set.assert_not_called()

    def test_credentials(self, client):
        MQTTTransport(MQTTConfiguration(username="u", password="p"), client=client)
        client.username_pw_set.assert_called_once_with("u", "p")

    def test_start_connects_async(self, client, config):
        MQTTTransport(config, client=client).start()
        client.connect_async.assert_called_once_with("localhost", 1883, keepalive=60)
        client.loop_start.assert_called_once()

    def test_subscribes_on_connect(self, client, config):
        transport = MQTTTransport(config, client=client)
        reason = MagicMock(is_failure=False)

        transport._on_connect(client, None, None, reason, None)

        assert transport.connected is True
        client.subscribe.assert_any_call("qingping/+/up", qos=1)
        client.subscribe.assert_any_call("other/+/up", qos=1)

    def test_refused_connection(self, client, config):
        transport = MQTTTransport(config, client=client)
        transport._on_connect(client, None, None, MagicMock(is_failure=True), None)

        assert transport.connected is False
        client.subscribe.assert_not_called()

    def test_disconnect_clears_flag(self, client, config):
        transport = MQTTTransport(config, client=client)
        transport.connected = True
        transport._on_disconnect(client, None, None, MagicMock(), None)
        assert transport.connected is False

    def test_message_forwarded_to_handler(self, client, config):
        handler = MagicMock()
        transport = MQTTTransport(config, handler=handler, client=client)

        transport._on_message(client, None, message("qingping/AA/up", b"{}"))

        handler.assert_called_once_with("qingping/AA/up", b"{}")

    def test_handler_exception_is_contained(self, client, config):
        handler = MagicMock(side_effect=RuntimeError("boom"))
        transport = MQTTTransport(config, handler=handler, client=client)

        transport._on_message(client, None, message("qingping/AA/up", b"{}"))

        handler.assert_called_once()

    def test_publish_success(self, client, config):
        client.publish.return_value = MagicMock(rc=mqtt.MQTT_ERR_SUCCESS)
        transport = MQTTTransport(config, client=client)

        transport.publish("qingping/AA/down", b"{}")

        client.publish.assert_called_once_with("qingping/AA/down", b"{}", qos=1, retain=False)

    def test_publish_rejected(self, client, config):
        client.publish.return_value = MagicMock(rc=mqtt.MQTT_ERR_NO_CONN)
        transport = MQTTTransport(config, client=client)

        with pytest.raises(PublishError) as exc_info:
            transport.publish("qingping/AA/down", b"{}")
        assert exc_info.value.topic == "qingping/AA/down"

    def test_stop(self, client, config):
        transport = MQTTTransport(config, client=client)
        transport.connected = True
        transport.stop()
        client.disconnect.assert_called_once()
        client.loop_stop.assert_called_once()
        assert transport.connected is False
