"""Bridge configuration.

Loaded from a YAML file, then selected values can be overridden from the
environment (optionally populated from a ``.env`` file).
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlsplit

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .routing.rule_index import TopicRule

logger = logging.getLogger(__name__)

DEFAULT_API_TIMEOUT = 10.0
DEFAULT_CLIENT_ID = "sensor-bridge"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_LOG_FORMAT = "text"

# variable de entorno -> (sección, clave)
ENV_OVERRIDES = {
    "API_ENDPOINT": ("api", "endpoint"),
    "MQTT_BROKER": ("mqtt", "broker"),
    "MQTT_USERNAME": ("mqtt", "username"),
    "MQTT_PASSWORD": ("mqtt", "password"),
    "LOG_LEVEL": ("logging", "level"),
}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_PLAIN_SCHEMES = {"tcp": 1883, "mqtt": 1883}
_TLS_SCHEMES = {"ssl": 8883, "tls": 8883, "mqtts": 8883}


def parse_duration(value: Union[str, int, float]) -> float:
    """Parse a duration into seconds.

    Accepts numbers (seconds) and Go-style strings such as ``"10s"``,
    ``"500ms"`` or ``"1m30s"``.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("empty duration")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for m in _DURATION_PART.finditer(text):
                if m.start() != pos:
                    break
                seconds += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
                pos = m.end()
            if pos != len(text):
                raise ValueError(f"invalid duration: {value!r}")
    if seconds < 0:
        raise ValueError(f"negative duration: {value!r}")
    return seconds


@dataclass(frozen=True)
class BrokerAddress:
    host: str
    port: int
    use_tls: bool = False


def parse_broker_url(url: str) -> BrokerAddress:
    """Split ``tcp://host:1883`` style broker URLs.

    A bare ``host[:port]`` is treated as ``tcp``.
    """
    if "://" not in url:
        url = f"tcp://{url}"
    parts = urlsplit(url)
    scheme = parts.scheme.lower()

    if scheme in _PLAIN_SCHEMES:
        default_port, use_tls = _PLAIN_SCHEMES[scheme], False
    elif scheme in _TLS_SCHEMES:
        default_port, use_tls = _TLS_SCHEMES[scheme], True
    else:
        raise ConfigError(f"unsupported MQTT broker scheme: {parts.scheme!r}")

    if not parts.hostname:
        raise ConfigError(f"mqtt.broker has no host: {url!r}")
    try:
        port = parts.port or default_port
    except ValueError as e:
        raise ConfigError(f"invalid mqtt.broker port: {url!r}") from e

    return BrokerAddress(host=parts.hostname, port=port, use_tls=use_tls)


class APIConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    endpoint: str = ""
    timeout: float = DEFAULT_API_TIMEOUT
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, v):
        if v is None or v == "":
            return DEFAULT_API_TIMEOUT
        seconds = parse_duration(v)
        return seconds or DEFAULT_API_TIMEOUT

    @field_validator("headers", mode="before")
    @classmethod
    def _headers_default(cls, v):
        return v or {}


class MQTTConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    broker: str = ""
    client_id: str = DEFAULT_CLIENT_ID
    username: str = ""
    password: str = ""
    qos: int = Field(default=0, ge=0, le=2)
    clean_session: bool = False
    connect_timeout: float = 10.0

    @field_validator("client_id", mode="before")
    @classmethod
    def _client_id_default(cls, v):
        return v or DEFAULT_CLIENT_ID

    @field_validator("username", "password", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return "" if v is None else v

    @field_validator("connect_timeout", mode="before")
    @classmethod
    def _parse_connect_timeout(cls, v):
        return 10.0 if v is None or v == "" else parse_duration(v)

    @property
    def address(self) -> BrokerAddress:
        return parse_broker_url(self.broker)


class TopicMapping(BaseModel):
    """One ``topics`` entry."""

    model_config = ConfigDict(extra="ignore")

    mqtt_topic: str
    sensor_id_from_payload: bool = False
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def _description_default(cls, v):
        return "" if v is None else v

    def to_rule(self) -> TopicRule:
        return TopicRule(
            pattern=self.mqtt_topic,
            sensor_id_from_payload=self.sensor_id_from_payload,
            description=self.description,
        )


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: str = DEFAULT_LOG_LEVEL
    format: str = DEFAULT_LOG_FORMAT

    @field_validator("level", mode="before")
    @classmethod
    def _level_default(cls, v):
        return v or DEFAULT_LOG_LEVEL

    @field_validator("format", mode="before")
    @classmethod
    def _format_default(cls, v):
        return v or DEFAULT_LOG_FORMAT


class Config(BaseModel):
    """Complete bridge configuration."""

    model_config = ConfigDict(extra="ignore")

    api: APIConfig = Field(default_factory=APIConfig)
    mqtt: MQTTConfig = Field(default_factory=MQTTConfig)
    topics: list[TopicMapping] = Field(default_factory=list)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("api", "mqtt", "logging", mode="before")
    @classmethod
    def _section_default(cls, v):
        return {} if v is None else v

    @field_validator("topics", mode="before")
    @classmethod
    def _topics_default(cls, v):
        return [] if v is None else v

    def ensure_valid(self) -> None:
        """Check required settings.

        Raises:
            ConfigError: missing endpoint, broker or topic mappings.
        """
        if not self.api.endpoint:
            raise ConfigError("api.endpoint is required")
        if not self.mqtt.broker:
            raise ConfigError("mqtt.broker is required")
        if not self.topics:
            raise ConfigError("at least one topic mapping is required")
        parse_broker_url(self.mqtt.broker)

    def rules(self) -> list[TopicRule]:
        """Topic rules in configured order."""
        return [t.to_rule() for t in self.topics]


def _load_env_file(env_file: Optional[str] = None) -> None:
    # Las variables reales del entorno tienen prioridad sobre el .env
    env_file = env_file or os.getenv("SENSOR_BRIDGE_ENV_FILE", ".env")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)
        logger.debug("[CONFIG] Loaded environment from %s", env_file)


def apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Override raw config values with the environment variables that are set."""
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is None or value == "":
            continue
        if not isinstance(data.get(section), dict):
            data[section] = {}
        data[section][key] = value
        logger.debug("[CONFIG] %s.%s overridden by %s", section, key, env_name)
    return data


def load_config(path: Union[str, Path], env_file: Optional[str] = None) -> Config:
    """Read and parse the YAML configuration file.

    Raises:
        ConfigError: unreadable file, invalid YAML or invalid values.
    """
    _load_env_file(env_file)

    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as e:
        raise ConfigError(f"failed to read config file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse config file: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("failed to parse config file: top level must be a mapping")

    apply_env_overrides(data)

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"failed to parse config file: {e}") from e
