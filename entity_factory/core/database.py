"""Engine and session helpers shared by SQLAlchemy-backed factories.

Repositories never open, commit or roll back transactions; the caller (a test
fixture, a seeding script) owns the session. The :class:`SessionRegistry`
lets factories built without an explicit session reuse the caller's one.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


class SessionRegistry:
    """Store the session provided by the caller (fixture, script, bootstrap)."""

    _session: Session | None = None

    @classmethod
    def set(cls, session: Session | None) -> None:
        """Register the SQLAlchemy session used to persist factory objects."""
        cls._session = session

    @classmethod
    def get(cls) -> Session:
        """Return the registered SQLAlchemy session.

        Returns
        -------
        sqlalchemy.orm.Session
            Session shared by repositories without an injected session.

        Raises
        ------
        RuntimeError
            If repositories are used before a session was registered.
        """
        if cls._session is None:
            raise RuntimeError(
                "No session registered. Pass a session explicitly or call "
                "SessionRegistry.set()/bootstrap() first."
            )
        return cls._session

    @classmethod
    def clear(cls) -> None:
        """Forget the registered session (does not close it)."""
        cls._session = None


def make_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine for ``url``.

    In-memory SQLite URLs get a :class:`~sqlalchemy.pool.StaticPool` so every
    session sees the same database.

    :param url: SQLAlchemy database URL.
    :type url: str
    :param echo: Log emitted SQL.
    :type echo: bool
    :returns: Configured engine.
    :rtype: :class:`sqlalchemy.Engine`
    """
    kwargs: dict[str, Any] = {"echo": echo}
    if url in {"sqlite://", "sqlite:///:memory:"}:
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory bound to ``engine`` (autoflush disabled)."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


__all__ = ["SessionRegistry", "make_engine", "make_session_factory"]
