"""Runtime wiring: logging, randomness, locale and the default session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from entity_factory.core.config import BaseConfig, get_config
from entity_factory.core.database import SessionRegistry, make_engine, make_session_factory
from entity_factory.core.logger import configure_logging
from entity_factory.generator import Generator, reseed


@dataclass(slots=True)
class Runtime:
    """Objects built by :func:`bootstrap`.

    :param config: Configuration in use.
    :param generator: Generator bound to ``FAKER_LOCALE``.
    :param engine: Default engine, when ``DATABASE_URL`` is configured.
    :param session: Session registered in :class:`SessionRegistry`, if any.
    """

    config: Any
    generator: Generator
    engine: Engine | None = None
    session: Session | None = None


def bootstrap(config: type[BaseConfig] | object | None = None) -> Runtime:
    """Configure logging, seed randomness and register the default session.

    Creating tables is left to the caller (migrations, ``metadata.create_all``).

    :param config: Config class/object; defaults to :func:`get_config`.
    :returns: The wired :class:`Runtime`.
    :rtype: Runtime
    """
    cfg = get_config() if config is None else config

    configure_logging(getattr(cfg, "LOG_LEVEL", "INFO"))

    seed = getattr(cfg, "FAKER_SEED", None)
    if seed is not None:
        reseed(seed)

    runtime = Runtime(config=cfg, generator=Generator(locale=getattr(cfg, "FAKER_LOCALE", None)))

    url = getattr(cfg, "DATABASE_URL", None)
    if url:
        runtime.engine = make_engine(url, echo=bool(getattr(cfg, "SQLALCHEMY_ECHO", False)))
        runtime.session = make_session_factory(runtime.engine)()
        SessionRegistry.set(runtime.session)
    return runtime


__all__ = ["Runtime", "bootstrap"]
