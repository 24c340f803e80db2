"""CLI entry point for the sensor bridge."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import Optional, Sequence

from .bridge import SensorBridge
from .config import load_config
from .errors import BrokerConnectError, ConfigError
from .logging_config import configure_logging

logger = logging.getLogger("sensor_bridge")


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _handle(signum, frame):
        logger.info("Received signal %s", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def main(argv: Optional[Sequence[str]] = None, stop_event: Optional[threading.Event] = None) -> int:
    p = argparse.ArgumentParser(description="MQTT to HTTP sensor data bridge")
    p.add_argument("--config", default="config.yaml", help="Path to configuration file")
    args = p.parse_args(argv)

    configure_logging("info", "text")
    logger.info("Starting sensor bridge (config=%s)", args.config)

    try:
        config = load_config(args.config)
        config.ensure_valid()
    except ConfigError as e:
        logger.critical("Failed to load configuration: %s", e)
        return 1

    configure_logging(config.logging.level, config.logging.format)
    logger.info(
        "Configuration loaded successfully: api_endpoint=%s mqtt_broker=%s topics=%d log_level=%s",
        config.api.endpoint,
        config.mqtt.broker,
        len(config.topics),
        config.logging.level,
    )

    if stop_event is None:
        stop_event = threading.Event()
        _install_signal_handlers(stop_event)

    bridge = SensorBridge(config)

    try:
        bridge.start()
    except BrokerConnectError as e:
        logger.critical("Failed to connect to MQTT broker: %s", e)
        bridge.stop()
        return 1

    logger.info("Bridge is running. Press Ctrl+C to exit.")
    while not stop_event.wait(1.0):
        pass

    logger.info("Shutting down bridge...")
    bridge.stop()
    logger.info("Bridge stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
