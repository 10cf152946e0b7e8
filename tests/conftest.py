"""Global pytest fixtures for the entity-factory test-suite.

SQLAlchemy-backed tests get a fresh in-memory SQLite database per test; the
session is registered in :class:`SessionRegistry` so factories built without
an explicit session use it.
"""

from __future__ import annotations

from collections.abc import Generator

import factory.random
import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from entity_factory.core.database import SessionRegistry, make_engine, make_session_factory
from entity_factory.repository import InMemoryRepository
from tests.models import Base


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    """Create an in-memory SQLite engine with every test table."""

    eng = make_engine("sqlite://")
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture()
def session(engine: Engine) -> Generator[Session, None, None]:
    """Provide a session registered for factories; rolled back afterwards."""

    sess = make_session_factory(engine)()
    SessionRegistry.set(sess)
    try:
        yield sess
    finally:
        SessionRegistry.clear()
        sess.rollback()
        sess.close()


@pytest.fixture()
def memory_repo() -> InMemoryRepository:
    """Return an empty in-memory repository."""

    return InMemoryRepository()


@pytest.fixture(autouse=True)
def _seed_randomness() -> None:
    """Make Factory Boy / Faker output reproducible per test."""

    factory.random.reseed_random(1337)
