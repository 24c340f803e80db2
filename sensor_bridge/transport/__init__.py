"""Transport layer - Recepción MQTT y despacho de mensajes."""

from .mqtt_client import MQTTClient
from .message_handler import DispatchOutcome, MessageHandler

__all__ = ["MQTTClient", "MessageHandler", "DispatchOutcome"]
