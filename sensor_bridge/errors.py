"""Jerarquía de errores del bridge.

Fatales en arranque:
- ConfigError
- BrokerConnectError

Por mensaje (se loguean y el mensaje se descarta):
- PayloadDecodeError
- NoRouteError
- PolicyRejectedError
- SensorIdMissingError
- ForwardError
"""

from __future__ import annotations

from typing import Optional


class BridgeError(Exception):
    """Error base del bridge."""


class ConfigError(BridgeError):
    """Configuración ilegible o inválida."""


class BrokerConnectError(BridgeError):
    """No se pudo establecer la conexión inicial con el broker."""


class DispatchError(BridgeError):
    """Error de despacho de un mensaje concreto."""

    def __init__(self, message: str, topic: str):
        super().__init__(message)
        self.topic = topic


class PayloadDecodeError(DispatchError):
    """Payload no es un SensorPayload JSON válido."""


class NoRouteError(DispatchError):
    """Ninguna regla configurada coincide con el topic."""

    def __init__(self, topic: str):
        super().__init__(f"no mapping found for topic: {topic}", topic)


class PolicyRejectedError(DispatchError):
    """La regla existe pero no permite sensorId desde el payload."""

    def __init__(self, topic: str, pattern: str):
        super().__init__("topic matched but sensor_id_from_payload not enabled", topic)
        self.pattern = pattern


class SensorIdMissingError(DispatchError):
    """La regla pide sensorId del payload y el payload no lo trae."""

    def __init__(self, topic: str, pattern: str):
        super().__init__("sensorId not found in payload", topic)
        self.pattern = pattern


class ForwardError(BridgeError):
    """Fallo al enviar la lectura a la API de colección."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
