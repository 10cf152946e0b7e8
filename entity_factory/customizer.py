"""Customizer helpers.

A customizer is any callable taking an entity. It either mutates the entity in
place and returns ``None``, or returns the instance to use instead (handy for
frozen dataclasses and :func:`dataclasses.replace`). Replacing customizers need a
real instance, so lookups with them require the ``instance`` probe strategy.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")

Customizer = Callable[[T], T | None]


def apply_customizer(customizer: Customizer[T], entity: T) -> T:
    """Run ``customizer`` on ``entity`` and return the resulting instance."""
    result = customizer(entity)
    return entity if result is None else result


def assign(**values: Any) -> Customizer[Any]:
    """Return a customizer setting each keyword as an attribute.

    Example::

        books.random_with(3, assign(author="Ursula K. Le Guin"))
    """

    def _assign(entity: Any) -> None:
        for name, value in values.items():
            setattr(entity, name, value)

    return _assign


def chain(*customizers: Customizer[T]) -> Customizer[T]:
    """Compose customizers, applied left to right."""

    def _chained(entity: T) -> T:
        for customizer in customizers:
            entity = apply_customizer(customizer, entity)
        return entity

    return _chained


__all__ = ["Customizer", "apply_customizer", "assign", "chain"]
