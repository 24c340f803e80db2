"""Tests de configuración de logging."""

import logging
import sys

import orjson
import pytest

from sensor_bridge.logging_config import JsonFormatter, configure_logging, parse_level


def _record(msg="hello %s", args=("world",), level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="sensor_bridge.test",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_base_fields(self):
        line = JsonFormatter().format(_record())
        data = orjson.loads(line)

        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["logger"] == "sensor_bridge.test"
        assert data["timestamp"].endswith("+00:00")

    def test_extra_fields_included(self):
        data = orjson.loads(
            JsonFormatter().format(_record(topic="home/kitchen/reading", sensor_id="s1"))
        )

        assert data["topic"] == "home/kitchen/reading"
        assert data["sensor_id"] == "s1"
        assert "pathname" not in data
        assert "args" not in data

    def test_non_serializable_extra(self):
        data = orjson.loads(JsonFormatter().format(_record(thing=object())))
        assert data["thing"].startswith("<object object")

    def test_exception_info(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = orjson.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in data["exc_info"]


class TestParseLevel:
    @pytest.mark.parametrize("name,expected", [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("warn", logging.WARNING),
        ("warning", logging.WARNING),
        (" error ", logging.ERROR),
    ])
    def test_valid(self, name, expected):
        assert parse_level(name) == expected

    @pytest.mark.parametrize("name", ["verbose", "", "trace"])
    def test_invalid(self, name):
        with pytest.raises(ValueError):
            parse_level(name)


class TestConfigureLogging:
    def test_text_format(self, capsys):
        root = configure_logging("debug", "text")
        logging.getLogger("sensor_bridge.x").debug("plain message")

        assert root.level == logging.DEBUG
        err = capsys.readouterr().err
        assert " - sensor_bridge.x - DEBUG - plain message" in err

    def test_json_format(self, capsys):
        configure_logging("info", "json")
        logging.getLogger("sensor_bridge.x").info("structured", extra={"topic": "a/b"})

        line = capsys.readouterr().err.strip().splitlines()[-1]
        data = orjson.loads(line)
        assert data["message"] == "structured"
        assert data["topic"] == "a/b"

    def test_invalid_level_falls_back_to_info(self, capsys):
        root = configure_logging("loud", "text")

        assert root.level == logging.INFO
        assert "Invalid log level, using info" in capsys.readouterr().err

    def test_replaces_previous_handlers(self):
        configure_logging("info", "text")
        root = configure_logging("info", "json")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
