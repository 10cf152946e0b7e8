"""Declarative generation models built on Factory Boy.

A *model* is a :class:`factory.Factory` subclass whose ``Meta.model`` is the
entity class and whose declarations are the per-field generation rules
(``factory.Faker``, ``factory.LazyFunction``, ``factory.fuzzy.*``...). The
entity factory never interprets a model; it only forwards it to the
:class:`~entity_factory.generator.Generator`.

This module derives a sensible default model from an entity's fields and
offers two deltas on top of any model:

* :func:`exclude` drops fields from the constructor arguments.
* :func:`override` replaces or adds declarations (e.g. a numeric range).

Field discovery
---------------
* SQLAlchemy mapped classes: column attributes, skipping autoincrement integer
  primary keys, foreign-key columns and columns carrying a client/server
  default (the database or the ORM fills those).
* Dataclasses: ``init`` fields with their resolved type hints.
* Plain classes: public class annotations.

Relationships are never populated.
"""

from __future__ import annotations

import dataclasses
import enum
import functools
import types
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Union, get_args, get_origin, get_type_hints

import factory
import factory.fuzzy
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

# Python type -> (Faker provider, provider kwargs)
_FAKER_PROVIDERS: dict[type, tuple[str, dict[str, Any]]] = {
    str: ("pystr", {}),
    int: ("pyint", {}),
    float: ("pyfloat", {"right_digits": 2}),
    bool: ("pybool", {}),
    Decimal: ("pydecimal", {"left_digits": 6, "right_digits": 2}),
    datetime: ("date_time", {}),
    date: ("date_object", {}),
    time: ("time_object", {}),
    bytes: ("binary", {"length": 16}),
}

# ``pystr`` default upper bound
_PYSTR_MAX_CHARS = 20


def _unwrap_optional(annotation: Any) -> Any:
    """Return ``X`` for ``X | None`` / ``Optional[X]``, else ``annotation``."""
    if get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not type(None)]
        return args[0] if len(args) == 1 else None
    return annotation


def declaration_for(annotation: Any, *, max_length: int | None = None) -> Any | None:
    """Return a Factory Boy declaration generating values of ``annotation``.

    :param annotation: Python type (``Optional`` is unwrapped).
    :type annotation: Any
    :param max_length: Upper bound for generated strings (column length).
    :type max_length: int | None
    :returns: Declaration, or ``None`` when the type is not supported.
    :rtype: Any | None
    """
    python_type = _unwrap_optional(annotation)
    if not isinstance(python_type, type) or get_origin(python_type) is not None:
        return None
    if issubclass(python_type, enum.Enum):
        return factory.fuzzy.FuzzyChoice(list(python_type))
    if python_type is uuid.UUID:
        return factory.LazyFunction(uuid.uuid4)
    if python_type is str and max_length:
        return factory.Faker("pystr", max_chars=max(1, min(max_length, _PYSTR_MAX_CHARS)))
    provider = _FAKER_PROVIDERS.get(python_type)
    if provider is None:
        return None
    name, kwargs = provider
    return factory.Faker(name, **kwargs)


def _mapper(entity_type: type) -> Mapper[Any] | None:
    mapper = sa_inspect(entity_type, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


def _type_hints(entity_type: type) -> dict[str, Any]:
    try:
        return get_type_hints(entity_type)
    except (NameError, TypeError):
        # Unresolvable forward references: keep raw (string) annotations, bases first
        hints: dict[str, Any] = {}
        for klass in reversed(entity_type.__mro__):
            hints.update(klass.__dict__.get("__annotations__", {}))
        return hints


def _generated_fields(entity_type: type) -> list[tuple[str, Any, int | None]]:
    """List ``(name, python_type, max_length)`` for fields a model should fill."""
    mapper = _mapper(entity_type)
    if mapper is not None:
        fields: list[tuple[str, Any, int | None]] = []
        for prop in mapper.column_attrs:
            column = prop.columns[0]
            if column.foreign_keys:
                continue
            if column.default is not None or column.server_default is not None:
                continue
            try:
                python_type = column.type.python_type
            except NotImplementedError:
                continue
            if column.primary_key and python_type is int and column.autoincrement in (True, "auto"):
                continue
            fields.append((prop.key, python_type, getattr(column.type, "length", None)))
        return fields

    hints = _type_hints(entity_type)
    if dataclasses.is_dataclass(entity_type):
        return [(f.name, hints.get(f.name, f.type), None) for f in dataclasses.fields(entity_type) if f.init]
    return [(name, hint, None) for name, hint in hints.items() if not name.startswith("_")]


def field_names(entity_type: type) -> frozenset[str] | None:
    """Return the assignable field names of ``entity_type`` when discoverable.

    :param entity_type: Entity class.
    :type entity_type: type
    :returns: Field names, or ``None`` when the class declares nothing.
    :rtype: frozenset[str] | None
    """
    mapper = _mapper(entity_type)
    if mapper is not None:
        return frozenset(mapper.attrs.keys())
    if dataclasses.is_dataclass(entity_type):
        return frozenset(f.name for f in dataclasses.fields(entity_type))
    names = {n for n in _type_hints(entity_type) if not n.startswith("_")}
    return frozenset(names) or None


@functools.lru_cache(maxsize=None)
def default_model(entity_type: type) -> type[factory.Factory]:
    """Build (once per entity type) a model filling every supported field.

    Fields whose type has no known generator are left to the entity's own
    default.

    :param entity_type: Entity class.
    :type entity_type: type
    :returns: Factory Boy factory class for ``entity_type``.
    :rtype: type[factory.Factory]
    """
    declarations: dict[str, Any] = {}
    for name, annotation, max_length in _generated_fields(entity_type):
        declaration = declaration_for(annotation, max_length=max_length)
        if declaration is not None:
            declarations[name] = declaration
    return factory.make_factory(entity_type, **declarations)


def exclude(model: type[factory.Factory], *fields: str) -> type[factory.Factory]:
    """Derive a model that no longer passes ``fields`` to the entity constructor.

    Example::

        model = exclude(BookModel, "isbn")
    """
    meta = type("Meta", (), {"exclude": tuple(model._meta.exclude) + fields})
    return type(f"{model.__name__}Excluding", (model,), {"Meta": meta})


def override(model: type[factory.Factory], **declarations: Any) -> type[factory.Factory]:
    """Derive a model whose ``declarations`` replace or extend the base ones.

    Example::

        model = override(BookModel, price=factory.Faker("pyfloat", min_value=1, max_value=100))
    """
    return type(f"{model.__name__}Override", (model,), dict(declarations))


__all__ = ["declaration_for", "default_model", "exclude", "field_names", "override"]
