"""Bridge MQTT → API de colección - Punto de entrada principal.

Usa la arquitectura modular:
- routing/     → Resolución topic → regla
- transport/   → Cliente MQTT y handler de mensajes
- forwarding/  → Envío HTTP a la API
- monitoring/  → Stats
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .config import Config
from .forwarding.api_client import APIClient, Forwarder
from .routing.rule_index import RuleIndex
from .transport.message_handler import MessageHandler
from .transport.mqtt_client import MQTTClient

logger = logging.getLogger(__name__)


class SensorBridge:
    """Bridge con arquitectura modular.

    Componentes:
    - RuleIndex: Tabla de ruteo (solo lectura)
    - MessageHandler: Decode, resolución y despacho
    - APIClient: Envío de lecturas (reemplazable por cualquier Forwarder)
    - MQTTClient: Conexión y suscripción MQTT

    El bridge es dueño del cliente MQTT; no hay estado global.
    """

    def __init__(
        self,
        config: Config,
        forwarder: Optional[Forwarder] = None,
        client_factory: Optional[Callable[..., MQTTClient]] = None,
    ):
        self._config = config
        self._rules = RuleIndex(config.rules())

        # 1. Forwarder
        self._api_client: Optional[APIClient] = None
        if forwarder is None:
            self._api_client = APIClient(
                endpoint=config.api.endpoint,
                timeout=config.api.timeout,
                headers=config.api.headers,
            )
            forwarder = self._api_client

        # 2. Handler
        self._handler = MessageHandler(self._rules, forwarder)

        # 3. Cliente MQTT
        address = config.mqtt.address
        factory = client_factory or MQTTClient
        self._mqtt = factory(
            broker_host=address.host,
            broker_port=address.port,
            username=config.mqtt.username or None,
            password=config.mqtt.password or None,
            client_id=config.mqtt.client_id,
            use_tls=address.use_tls,
            clean_session=config.mqtt.clean_session,
            qos=config.mqtt.qos,
            subscriptions=self._rules.rules,
            connect_timeout=config.mqtt.connect_timeout,
        )
        self._mqtt.set_message_handler(self._handler.handle)

        self._running = False

    def start(self) -> None:
        """Conecta al broker.

        Raises:
            BrokerConnectError: si la conexión inicial falla.
        """
        logger.info("[BRIDGE] Connecting to MQTT broker %s...", self._config.mqtt.broker)
        self._mqtt.connect()
        self._running = True
        logger.info(
            "[BRIDGE] Started: %d topic rules (%s)",
            len(self._rules),
            ", ".join(self._rules.patterns),
        )

    def stop(self) -> None:
        """Detiene el bridge."""
        self._running = False
        self._mqtt.disconnect()

        if self._api_client is not None:
            self._api_client.close()

        logger.info("[BRIDGE] Stopped. %s", self._handler.stats)

    @property
    def handler(self) -> MessageHandler:
        return self._handler

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        return self._mqtt.is_connected

    @property
    def stats(self) -> dict:
        """Estadísticas del bridge."""
        return {
            "running": self._running,
            "connected": self.is_connected,
            "broker": self._config.mqtt.broker,
            "api_endpoint": self._config.api.endpoint,
            "topics": len(self._rules),
            "reconnect_count": self._mqtt.reconnect_count,
            **self._handler.stats.to_dict(),
        }

    def health_check(self) -> dict:
        """Health check del bridge."""
        handler_stats = self._handler.stats
        return {
            "healthy": self._running and self.is_connected,
            "running": self._running,
            "connected": self.is_connected,
            "messages_forwarded": handler_stats.forwarded,
            "messages_failed": handler_stats.failed,
        }
