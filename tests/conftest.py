"""Fixtures compartidos."""

import logging
from unittest.mock import MagicMock, patch

import paho.mqtt.client as mqtt
import pytest

from sensor_bridge.routing.rule_index import RuleIndex, TopicRule
from sensor_bridge.transport.message_handler import MessageHandler

FIXED_NOW_MS = 1_760_860_800_000


class RecordingForwarder:
    """Forwarder stub que registra cada envío."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def send(self, sensor_id, value, timestamp_ms):
        self.calls.append((sensor_id, value, timestamp_ms))
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """configure_logging() reemplaza los handlers del root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def rules() -> RuleIndex:
    return RuleIndex([
        TopicRule("home/+/reading", True, "Room sensors"),
        TopicRule("legacy/#", False, "Old devices, no payload ids"),
        TopicRule("factory/line1/temp", True, "Line 1 temperature"),
    ])


@pytest.fixture
def make_forwarder():
    return RecordingForwarder


@pytest.fixture
def forwarder() -> RecordingForwarder:
    return RecordingForwarder()


@pytest.fixture
def fixed_now_ms() -> int:
    return FIXED_NOW_MS


@pytest.fixture
def handler(rules, forwarder) -> MessageHandler:
    return MessageHandler(rules, forwarder, clock=lambda: FIXED_NOW_MS)


@pytest.fixture
def paho_client_cls():
    """Reemplaza paho Client; no hay red en los tests."""
    instance = MagicMock()
    instance.subscribe.return_value = (mqtt.MQTT_ERR_SUCCESS, 1)
    with patch("sensor_bridge.transport.mqtt_client.mqtt.Client", return_value=instance) as cls:
        yield cls


@pytest.fixture
def fake_paho(paho_client_cls):
    return paho_client_cls.return_value
