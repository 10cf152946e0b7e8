"""
Exceptions raised by entity factories and their collaborators.

These exceptions are **backend-agnostic**: repositories translate their own
driver errors (e.g. ``sqlalchemy.exc.SQLAlchemyError``) into
:class:`PersistenceError` and chain the original exception as ``__cause__``.

Nothing here is retried or rolled back; every error is a synchronous failure
of the invoking call.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class FactoryError(Exception):
    """
    Base class for all entity-factory errors.

    Notes
    -----
    - Invalid call arguments (e.g. a negative count) raise ``ValueError``
      instead; these are caller bugs, not factory failures.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class TypeResolutionError(FactoryError):
    """
    Raised when a factory's entity type cannot be determined.

    :param factory: Factory class name.
    :type factory: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    factory: str
    detail: str

    def __str__(self) -> str:
        return f"Cannot resolve entity type of {self.factory}: {self.detail}"


@dataclass(slots=True)
class ProbeConstructionError(FactoryError):
    """
    Raised when a probe cannot be built for an entity type.

    :param entity: Entity name (e.g., "Book").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Cannot build probe for {self.entity}: {self.detail}"


@dataclass(slots=True)
class GenerationError(FactoryError):
    """
    Raised when random instances cannot be produced from a model.

    :param entity: Entity name.
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Cannot generate {self.entity}: {self.detail}"


@dataclass(slots=True)
class PersistenceError(FactoryError):
    """
    Raised when a repository fails to save or query entities.

    :param entity: Entity name.
    :type entity: str
    :param operation: Repository operation (``save``, ``find_page``...).
    :type operation: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    operation: str
    detail: str

    def __str__(self) -> str:
        return f"{self.operation} failed for {self.entity}: {self.detail}"


__all__ = [
    "FactoryError",
    "TypeResolutionError",
    "ProbeConstructionError",
    "GenerationError",
    "PersistenceError",
]
