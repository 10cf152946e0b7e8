"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

import pytest

from entity_factory.core.logger import JSONFormatter, configure_logging
from tests.factories.note import NoteFactory


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_sets_level(restore_root_logger) -> None:
    """``configure_logging`` should set the root logger level."""

    # Act
    configure_logging("DEBUG")

    # Assert
    assert logging.getLogger().level == logging.DEBUG
    assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)


def test_json_formatter_includes_extras() -> None:
    record = logging.LogRecord("entity_factory.factory", logging.DEBUG, __file__, 1, "hello %s", ("x",), None)
    record.entity = "Note"
    record.missing = 2

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "hello x"
    assert payload["level"] == "DEBUG"
    assert payload["entity"] == "Note"
    assert payload["missing"] == 2
    assert "found" not in payload


def test_random_logs_find_or_create_decision(memory_repo, caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="entity_factory.factory")
    notes = NoteFactory(memory_repo)
    notes.create(1)

    notes.random(3)

    records = [r for r in caplog.records if r.name == "entity_factory.factory"]
    assert records
    assert (records[-1].requested, records[-1].found, records[-1].missing) == (3, 1, 2)
