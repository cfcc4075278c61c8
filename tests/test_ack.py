"""Tests del envío de acks."""

import pytest

from qingping_mqtt.errors import AckEncodeError, PublishError
from qingping_mqtt.mqtt.ack import AckSender, down_topic


class TestDownTopic:

    @pytest.mark.parametrize("up, down", [
        ("t/up", "t/down"),
        ("qingping/112233445566/up", "qingping/112233445566/down"),
        ("a/up/b/up", "a/up/b/down"),
        ("qingping/upstairs/up", "qingping/upstairs/down"),
        ("legacy/up/AA", "legacy/down/AA"),
    ])
    def test_up_segment_is_replaced(self, up, down):
        assert down_topic(up) == down


class TestAckSender:

    def test_success(self, ack_sender, publisher, counter):
        assert ack_sender.send("dev/up", 42) is True

        assert publisher.published == [
            ("dev/down", {"type": "18", "ack_id": 42, "code": 0, "timestamp": 1594815555}),
        ]
        assert counter("acks_sent", topic="dev/up") == 1
        assert counter("ack_errors", topic="dev/down") is None

    def test_publish_error_is_counted(self, ack_sender, publisher, counter):
        publisher.error = PublishError("dev/down", "no connection")

        assert ack_sender.send("dev/up", 42) is False
        assert counter("ack_errors", topic="dev/down") == 1
        assert counter("acks_sent", topic="dev/up") is None

    def test_encode_error_skips_publish(self, sink, publisher, counter):
        sender = AckSender(publisher, sink, clock=lambda: float("nan"))

        with pytest.raises(AckEncodeError):
            sender.encode("dev/down", 1)

        assert sender.send("dev/up", 1) is False
        assert publisher.published == []
        assert counter("ack_errors", topic="dev/down") == 1

    def test_no_retry(self, ack_sender, publisher, counter):
        publisher.error = OSError("broken pipe")
        ack_sender.send("dev/up", 1)
        publisher.error = None

        assert publisher.published == []
        assert counter("ack_errors", topic="dev/down") == 1
