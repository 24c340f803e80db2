"""Cliente MQTT para recepción de lecturas."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence

import paho.mqtt.client as mqtt

from ..errors import BrokerConnectError
from ..routing.rule_index import TopicRule

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, bytes], object]

RECONNECT_MIN_DELAY = 1
RECONNECT_MAX_DELAY = 60


class MQTTClient:
    """Cliente MQTT ligero para recepción de lecturas.

    Responsabilidades:
    - Conexión/desconexión a broker MQTT
    - Suscripción a todos los patterns configurados en cada conexión
      (inicial y reconexiones)
    - Delegación de mensajes a handler

    La reconexión la gestiona el loop de paho (backoff 1s..60s).
    """

    def __init__(
        self,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: str = "sensor-bridge",
        use_tls: bool = False,
        clean_session: bool = False,
        qos: int = 0,
        subscriptions: Sequence[TopicRule] = (),
        connect_timeout: float = 10.0,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.client_id = client_id
        self.use_tls = use_tls
        self.clean_session = clean_session
        self.qos = qos
        self.subscriptions = tuple(subscriptions)
        self.connect_timeout = connect_timeout

        self._client: Optional[mqtt.Client] = None
        self._connected = False
        self._connect_error: Optional[str] = None
        self._stopping = False
        self._connect_count = 0
        self._message_handler: Optional[MessageCallback] = None

    def set_message_handler(self, handler: MessageCallback):
        """Configura el handler de mensajes."""
        self._message_handler = handler

    def connect(self) -> None:
        """Conecta al broker y espera el CONNACK.

        Raises:
            BrokerConnectError: error de socket, conexión rechazada o timeout.
        """
        self._stopping = False
        self._connect_error = None

        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            clean_session=self.clean_session,
            protocol=mqtt.MQTTv311,
        )

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message
        self._client.reconnect_delay_set(
            min_delay=RECONNECT_MIN_DELAY, max_delay=RECONNECT_MAX_DELAY
        )

        if self.username:
            self._client.username_pw_set(self.username, self.password or None)
        if self.use_tls:
            self._client.tls_set()

        logger.info("[MQTT] Connecting to %s:%d", self.broker_host, self.broker_port)

        try:
            self._client.connect(self.broker_host, self.broker_port, keepalive=60)
        except (OSError, ValueError) as e:
            raise BrokerConnectError(
                f"failed to connect to MQTT broker {self.broker_host}:{self.broker_port}: {e}"
            ) from e

        self._client.loop_start()

        # Esperar conexión
        deadline = time.monotonic() + self.connect_timeout
        while not self._connected and self._connect_error is None:
            if time.monotonic() >= deadline:
                self._abort()
                raise BrokerConnectError(
                    f"timed out after {self.connect_timeout}s waiting for MQTT broker"
                )
            time.sleep(0.1)

        if self._connect_error is not None:
            self._abort()
            raise BrokerConnectError(f"MQTT broker refused connection: {self._connect_error}")

        logger.info("[MQTT] Successfully connected to MQTT broker")

    def disconnect(self):
        """Desconecta del broker."""
        if self._client is None:
            return

        self._stopping = True
        try:
            if self._connected:
                self._client.disconnect()
                logger.info("[MQTT] Disconnected from MQTT broker")
            self._client.loop_stop()
        except Exception as e:
            logger.warning("[MQTT] Disconnect error: %s", e)
        self._connected = False

    def _abort(self):
        self._stopping = True
        try:
            self._client.loop_stop()
        except Exception as e:
            logger.warning("[MQTT] Error stopping network loop: %s", e)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión: (re)suscribe todos los patterns."""
        if reason_code != 0:
            self._connected = False
            self._connect_error = str(reason_code)
            logger.error("[MQTT] Connection failed: rc=%s", reason_code)
            return

        self._connected = True
        self._connect_count += 1
        logger.info("[MQTT] Connected to MQTT broker, subscribing to topics...")
        self._subscribe_all(client)

    def _subscribe_all(self, client) -> None:
        for rule in self.subscriptions:
            logger.info(
                "[MQTT] Subscribing to topic %s (%s)",
                rule.pattern,
                rule.description,
                extra={"topic": rule.pattern, "description": rule.description},
            )
            try:
                result, _mid = client.subscribe(rule.pattern, qos=self.qos)
            except ValueError as e:
                logger.error("[MQTT] Failed to subscribe to %s: %s", rule.pattern, e)
                continue
            if result != mqtt.MQTT_ERR_SUCCESS:
                logger.error(
                    "[MQTT] Failed to subscribe to %s: %s",
                    rule.pattern,
                    mqtt.error_string(result),
                )

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de desconexión."""
        self._connected = False
        if self._stopping:
            logger.debug("[MQTT] Disconnected (rc=%s)", reason_code)
        else:
            logger.warning(
                "[MQTT] Connection to MQTT broker lost (rc=%s), will attempt to reconnect...",
                reason_code,
            )

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje - delega al handler."""
        if not self._message_handler:
            return
        try:
            self._message_handler(msg.topic, msg.payload)
        except Exception as e:
            logger.exception("[MQTT] Message handler error: %s (topic=%s)", e, msg.topic)

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def reconnect_count(self) -> int:
        return max(self._connect_count - 1, 0)
