"""Domain layer - Modelos de lectura y formato del payload."""

from .reading import SensorPayload, SensorReading, decode_payload, now_millis

__all__ = ["SensorPayload", "SensorReading", "decode_payload", "now_millis"]
