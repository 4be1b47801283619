"""
RainCache - Logging Setup Tests
"""

import json
import logging
from collections.abc import Generator

import pytest

from raincache.config import RainCacheConfig
from raincache.logger_setup import JSONFormatter, setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def restore_package_logger() -> Generator[None, None, None]:
    logger = logging.getLogger("raincache")
    level, handlers = logger.level, logger.handlers[:]
    yield
    logger.setLevel(level)
    logger.handlers[:] = handlers


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("raincache.cache", logging.INFO, __file__, 10, "stored %s", ("42",), None)
    record.namespace = "message"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "stored 42"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "raincache.cache"
    assert payload["namespace"] == "message"
    assert payload["timestamp"].endswith("Z")


def test_setup_logging_replaces_handlers() -> None:
    setup_logging("DEBUG", "text")
    logger = setup_logging("WARNING", "json")

    assert logger.name == "raincache"
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JSONFormatter)


def test_setup_logging_from_config(capsys: pytest.CaptureFixture[str]) -> None:
    logger = setup_logging_from_config(RainCacheConfig(log_level="INFO", log_format="json"))

    logging.getLogger("raincache.storage").info("engine ready", extra={"engine_name": "default"})

    line = capsys.readouterr().err.strip().splitlines()[-1]
    assert json.loads(line)["engine_name"] == "default"
    assert logger.level == logging.INFO
