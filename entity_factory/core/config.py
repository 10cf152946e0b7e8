"""Factory settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep a prefixed name to avoid collisions)
ENV_VAR: Final[str] = "ENTITY_FACTORY_ENV"  # 'development' | 'testing' | 'production'


# Load .env when present (no-op otherwise)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int | None = None) -> int | None:
    """Parse an optional integer from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: int | None, optional
        Value returned when the variable is unset or blank.

    Returns
    -------
    int | None
        Parsed integer or ``default``.

    Raises
    ------
    ValueError
        If the variable is set to something that is not an integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {val!r}") from exc


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    DATABASE_URL: str | None
        SQLAlchemy URL for the default engine. ``None`` leaves the session
        registry empty; factories then need an explicit session.
    SQLALCHEMY_ECHO: bool
        When ``True`` SQLAlchemy logs SQL statements for debugging.
    FAKER_SEED: int | None
        Seed applied to factory_boy and Faker randomness for reproducible runs.
    FAKER_LOCALE: str | None
        Default Faker locale used by generators (e.g. ``"es_ES"``).

    Notes
    -----
    Values are read from environment variables when the module is imported,
    enabling configuration without code changes.
    """

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL") or None
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    FAKER_SEED = env_int("FAKER_SEED")
    FAKER_LOCALE = os.getenv("FAKER_LOCALE") or None


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Logs at ``DEBUG`` unless ``LOG_LEVEL`` says otherwise, which surfaces the
    find-or-create decisions taken by factories.
    """

    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Seeds randomness (``1337``) unless ``FAKER_SEED`` overrides it.
    """

    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")
    FAKER_SEED = env_int("FAKER_SEED", 1337)


class ProductionConfig(BaseConfig):
    """Configuration for shared environments (seeding staging databases).

    Notes
    -----
    Keeps SQL echoing disabled regardless of the environment.
    """

    SQLALCHEMY_ECHO = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``ENTITY_FACTORY_ENV``.

    Returns
    -------
    type[BaseConfig]
        Configuration class.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``ENTITY_FACTORY_ENV`` is
    unset or unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
