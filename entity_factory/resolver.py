"""Entity type resolution for generic factories.

``class BookFactory(EntityFactory[Book])`` carries ``Book`` in the class's
``__orig_bases__``. :func:`resolve_entity_type` follows the generic base's
first type parameter down the inheritance chain, substituting type variables
at every parameterized step, so intermediate generics such as
``class Keyed(EntityFactory[T], Generic[K, T])`` resolve to the argument bound
to ``T`` and never to an unrelated one. Factories may skip the walk entirely by
passing ``entity_type=`` or by setting an ``entity_type`` class attribute.
"""

from __future__ import annotations

import functools
from typing import Any, TypeVar, get_args, get_origin

from entity_factory.core.errors import TypeResolutionError


def _bound_argument(klass: type, generic_base: type) -> Any:
    """Return what ``klass`` binds ``generic_base``'s first parameter to.

    The result is a concrete argument, a type variable of ``klass`` (still
    unbound at this level) or ``None`` when no path reaches the base.
    """
    if klass is generic_base:
        params = getattr(generic_base, "__parameters__", ())
        return params[0] if params else None

    orig_bases = klass.__dict__.get("__orig_bases__", klass.__bases__)
    for base in orig_bases:
        origin = get_origin(base)
        target = base if origin is None else origin
        if not isinstance(target, type) or not issubclass(target, generic_base):
            continue
        bound = _bound_argument(target, generic_base)
        if bound is None:
            continue
        if isinstance(bound, TypeVar) and origin is not None:
            params = getattr(origin, "__parameters__", ())
            args = get_args(base)
            if bound not in params or len(args) != len(params):
                return None
            bound = args[params.index(bound)]
        return bound
    return None


@functools.lru_cache(maxsize=None)
def resolve_entity_type(factory_cls: type, generic_base: type) -> type:
    """Return the entity class bound to ``generic_base``'s type parameter.

    :param factory_cls: Concrete factory class.
    :type factory_cls: type
    :param generic_base: Generic class whose first parameter is the entity.
    :type generic_base: type
    :returns: Entity class.
    :rtype: type
    :raises TypeResolutionError: If the parameter is left unbound, bound to
        something other than a plain class, or cannot be followed.
    """
    bound = _bound_argument(factory_cls, generic_base)
    if isinstance(bound, type) and get_origin(bound) is None:
        return bound
    raise TypeResolutionError(
        factory_cls.__name__,
        f"no concrete type argument for {generic_base.__name__}; "
        "parameterize the class or pass entity_type explicitly",
    )


def resolve(factory: Any, generic_base: type) -> type:
    """Resolve the entity type of a factory instance.

    An ``entity_type`` attribute holding a class wins over the generic walk.
    """
    explicit = getattr(factory, "entity_type", None)
    if isinstance(explicit, type):
        return explicit
    return resolve_entity_type(type(factory), generic_base)


__all__ = ["resolve", "resolve_entity_type"]
