"""Handler de mensajes MQTT - motor de despacho.

Flujo por mensaje:
  payload → decode → resolución de regla → sensorId → timestamp → API

Cada invocación es independiente: el único estado compartido es el
RuleIndex (solo lectura) y las Stats (con lock).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from ..domain.reading import SensorPayload, SensorReading, decode_payload, now_millis
from ..errors import (
    ForwardError,
    NoRouteError,
    PayloadDecodeError,
    PolicyRejectedError,
    SensorIdMissingError,
)
from ..forwarding.api_client import Forwarder
from ..monitoring.stats import Stats
from ..routing.rule_index import RuleIndex, TopicRule

logger = logging.getLogger(__name__)

_MAX_LOGGED_PAYLOAD = 1000


class DispatchOutcome(Enum):
    """Resultado del despacho de un mensaje."""
    FORWARDED = "forwarded"
    DECODE_FAILED = "decode_failed"
    NO_ROUTE = "no_route"
    POLICY_REJECTED = "policy_rejected"
    SENSOR_ID_MISSING = "sensor_id_missing"
    FORWARD_FAILED = "forward_failed"


class MessageHandler:
    """Resuelve mensajes MQTT a lecturas y las reenvía a la API.

    Responsabilidades:
    - Parseo del payload JSON
    - Resolución topic → TopicRule
    - Extracción de sensorId según la política de la regla
    - Delegación al forwarder
    - Tracking de estadísticas

    Ningún error se propaga al cliente MQTT: todo se loguea y el
    mensaje se descarta (sin reintentos ni DLQ).
    """

    def __init__(
        self,
        rules: RuleIndex,
        forwarder: Forwarder,
        stats: Optional[Stats] = None,
        clock: Callable[[], int] = now_millis,
    ):
        self._rules = rules
        self._forwarder = forwarder
        self._stats = stats or Stats()
        self._clock = clock

    def handle(self, topic: str, payload: bytes) -> DispatchOutcome:
        """Procesa un mensaje MQTT."""
        self._stats.incr("received")
        extra = {"topic": topic}
        logger.debug("[HANDLER] Received MQTT message (topic=%s)", topic, extra=extra)

        # 1-5. Decode, resolución y sensorId
        try:
            reading = self.resolve_reading(topic, payload)
        except PayloadDecodeError as e:
            logger.error(
                "[HANDLER] Failed to parse JSON payload: %s (topic=%s payload=%s)",
                e,
                topic,
                _preview(payload),
                extra=extra,
            )
            return self._finish(DispatchOutcome.DECODE_FAILED)
        except NoRouteError as e:
            logger.error("[HANDLER] Failed to determine sensor ID: %s", e, extra=extra)
            return self._finish(DispatchOutcome.NO_ROUTE)
        except PolicyRejectedError as e:
            logger.warning(
                "[HANDLER] Failed to determine sensor ID: %s (topic=%s rule=%s)",
                e,
                topic,
                e.pattern,
                extra=extra,
            )
            return self._finish(DispatchOutcome.POLICY_REJECTED)
        except SensorIdMissingError as e:
            logger.error(
                "[HANDLER] Failed to determine sensor ID: %s (topic=%s rule=%s)",
                e,
                topic,
                e.pattern,
                extra=extra,
            )
            return self._finish(DispatchOutcome.SENSOR_ID_MISSING)

        extra["sensor_id"] = reading.sensor_id
        logger.info(
            "[HANDLER] Processing sensor data: sensor=%s value=%s timestamp=%d",
            reading.sensor_id,
            reading.value,
            reading.timestamp_ms,
            extra={**extra, "value": reading.value, "timestamp": reading.timestamp_ms},
        )

        # 6. Envío a la API
        try:
            self._forwarder.send(reading.sensor_id, reading.value, reading.timestamp_ms)
        except ForwardError as e:
            logger.error(
                "[HANDLER] Failed to send data to API: %s (topic=%s sensor=%s)",
                e,
                topic,
                reading.sensor_id,
                extra=extra,
            )
            return self._finish(DispatchOutcome.FORWARD_FAILED)
        except Exception as e:
            logger.exception(
                "[HANDLER] Unexpected forwarder error: %s (topic=%s sensor=%s)",
                e,
                topic,
                reading.sensor_id,
                extra=extra,
            )
            return self._finish(DispatchOutcome.FORWARD_FAILED)

        # 7. OK
        logger.info(
            "[HANDLER] Successfully forwarded sensor data to API (sensor=%s)",
            reading.sensor_id,
            extra=extra,
        )
        return self._finish(DispatchOutcome.FORWARDED)

    def resolve_reading(self, topic: str, payload: bytes) -> SensorReading:
        """Convierte un mensaje en SensorReading.

        Raises:
            PayloadDecodeError, NoRouteError, PolicyRejectedError,
            SensorIdMissingError
        """
        data = decode_payload(payload, topic)

        rule = self._rules.resolve(topic)
        if rule is None:
            raise NoRouteError(topic)

        self._check_sensor_id(rule, topic, data)
        return SensorReading.from_payload(data, received_at_ms=self._clock())

    @staticmethod
    def _check_sensor_id(rule: TopicRule, topic: str, data: SensorPayload) -> None:
        """Aplica la política de la regla sobre el sensorId."""
        if not rule.sensor_id_from_payload:
            raise PolicyRejectedError(topic, rule.pattern)
        if not data.sensor_id:
            raise SensorIdMissingError(topic, rule.pattern)

    def _finish(self, outcome: DispatchOutcome) -> DispatchOutcome:
        self._stats.incr(outcome.value)

        # Log periódico
        if outcome is DispatchOutcome.FORWARDED and self._stats.forwarded % 100 == 0:
            logger.info("[HANDLER] %s", self._stats)
        return outcome

    @property
    def stats(self) -> Stats:
        return self._stats

    @property
    def rules(self) -> RuleIndex:
        return self._rules


def _preview(payload: bytes) -> str:
    return payload[:_MAX_LOGGED_PAYLOAD].decode("utf-8", errors="replace")
