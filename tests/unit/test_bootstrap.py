"""Unit tests for runtime bootstrap."""

from __future__ import annotations

import logging

import pytest

from entity_factory.bootstrap import bootstrap
from entity_factory.core.database import SessionRegistry
from tests.factories.book import BookModel


class SeededConfig:
    LOG_LEVEL = "WARNING"
    DATABASE_URL = "sqlite://"
    SQLALCHEMY_ECHO = False
    FAKER_SEED = 7
    FAKER_LOCALE = "es_ES"


class NoDatabaseConfig:
    LOG_LEVEL = "INFO"
    DATABASE_URL = None


@pytest.fixture()
def clean_runtime():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    runtimes = []
    yield runtimes
    for runtime in runtimes:
        if runtime.session is not None:
            runtime.session.close()
        if runtime.engine is not None:
            runtime.engine.dispose()
    SessionRegistry.clear()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_bootstrap_registers_session(clean_runtime):
    runtime = bootstrap(SeededConfig)
    clean_runtime.append(runtime)

    assert SessionRegistry.get() is runtime.session
    assert runtime.generator.locale == "es_ES"
    assert logging.getLogger().level == logging.WARNING


def test_bootstrap_seed_is_reproducible(clean_runtime):
    first = bootstrap(SeededConfig)
    titles = [b.title for b in first.generator.generate(BookModel, 3)]
    second = bootstrap(SeededConfig)
    clean_runtime.extend([first, second])

    assert [b.title for b in second.generator.generate(BookModel, 3)] == titles


def test_bootstrap_without_database(clean_runtime):
    SessionRegistry.clear()
    runtime = bootstrap(NoDatabaseConfig)
    clean_runtime.append(runtime)

    assert runtime.engine is None
    with pytest.raises(RuntimeError):
        SessionRegistry.get()
