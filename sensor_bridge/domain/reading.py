"""Modelo de dominio para lecturas de sensores.

Formato esperado en el payload MQTT:
{
    "sensorId": "kitchen-01",
    "value": 21.5,
    "timestamp": 1760860800000
}

- sensorId: opcional en el wire, requerido si la regla lo extrae del payload
- value: requerido
- timestamp: epoch en milisegundos, opcional (0/ausente = hora de recepción)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import PayloadDecodeError


def now_millis() -> int:
    """Epoch actual en milisegundos."""
    return int(time.time() * 1000)


class SensorPayload(BaseModel):
    """Schema del mensaje publicado por el dispositivo."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sensor_id: str = Field(default="", alias="sensorId")
    value: float
    timestamp: int = 0

    @field_validator("sensor_id", "timestamp", mode="before")
    @classmethod
    def null_as_default(cls, v, info):
        # JSON null equivale a campo ausente
        if v is None:
            return "" if info.field_name == "sensor_id" else 0
        return v

    @field_validator("value", "timestamp", mode="before")
    @classmethod
    def json_number_only(cls, v):
        # Sin coerción: "21.5" o true no son números
        if isinstance(v, (str, bool)):
            raise ValueError("must be a JSON number")
        return v


@dataclass(frozen=True)
class SensorReading:
    """Lectura resuelta, lista para enviar a la API.

    Solo se construye con un sensor_id no vacío.
    """

    sensor_id: str
    value: float
    timestamp_ms: int

    def __post_init__(self):
        if not self.sensor_id:
            raise ValueError("sensor_id must not be empty")

    @classmethod
    def from_payload(
        cls,
        payload: SensorPayload,
        received_at_ms: Optional[int] = None,
    ) -> SensorReading:
        """Construye la lectura aplicando el timestamp por defecto."""
        timestamp = payload.timestamp
        if timestamp == 0:
            timestamp = received_at_ms if received_at_ms is not None else now_millis()
        return cls(sensor_id=payload.sensor_id, value=payload.value, timestamp_ms=timestamp)

    def to_api_payload(self) -> dict[str, Any]:
        """Convierte al body JSON de la API de colección."""
        return {
            "sensorId": self.sensor_id,
            "value": self.value,
            "timestamp": self.timestamp_ms,
        }


def decode_payload(raw: bytes, topic: str = "") -> SensorPayload:
    """Parsea y valida el payload crudo.

    Raises:
        PayloadDecodeError: JSON inválido, no es un objeto, falta value
            o algún campo tiene tipo incorrecto.
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise PayloadDecodeError(f"invalid JSON: {e}", topic) from e

    if not isinstance(data, dict):
        raise PayloadDecodeError(
            f"payload must be a JSON object, got {type(data).__name__}", topic
        )

    try:
        return SensorPayload.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or "payload"
        raise PayloadDecodeError(f"invalid field {field}: {first['msg']}", topic) from e
