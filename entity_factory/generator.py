"""Random instance generation on top of Factory Boy and Faker."""

from __future__ import annotations

import contextlib
import logging
from typing import Any

import factory
import factory.random
from factory.errors import FactoryError as FactoryBoyError
from faker.exceptions import UniquenessException

from entity_factory.core.errors import GenerationError

log = logging.getLogger(__name__)


def model_entity_name(model: type[factory.Factory]) -> str:
    """Return the entity class name a model builds (falls back to the model name)."""
    entity = getattr(getattr(model, "_meta", None), "model", None)
    return getattr(entity, "__name__", model.__name__)


def reseed(seed: int) -> None:
    """Seed Factory Boy's and Faker's shared random generators."""
    factory.random.reseed_random(seed)


class Generator:
    """Produce populated, unpersisted instances from a declarative model.

    The generator is stateless apart from an optional Faker locale. Every call
    builds fresh instances; nothing is shared between them unless the model
    itself declares a shared reference.
    """

    def __init__(self, locale: str | None = None) -> None:
        """Initialise the generator.

        :param locale: Faker locale applied to every ``factory.Faker``
            declaration during generation (``None`` keeps Faker's default).
        :type locale: str | None
        """
        self.locale = locale

    def _locale_scope(self) -> contextlib.AbstractContextManager[Any]:
        if self.locale is None:
            return contextlib.nullcontext()
        return factory.Faker.override_default_locale(self.locale)

    def generate(self, model: type[factory.Factory], count: int) -> list[Any]:
        """Build ``count`` instances from ``model``.

        :param model: Factory Boy factory class.
        :type model: type[factory.Factory]
        :param count: Number of instances (``0`` yields an empty list).
        :type count: int
        :returns: Exactly ``count`` new instances.
        :rtype: list[Any]
        :raises ValueError: If ``count`` is negative.
        :raises GenerationError: If the model cannot produce the instances.
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        if count == 0:
            return []

        entity = model_entity_name(model)
        try:
            with self._locale_scope():
                instances = list(model.build_batch(count))
        except (FactoryBoyError, UniquenessException, TypeError, ValueError, AttributeError) as exc:
            log.warning("Generation failed: entity=%s count=%s", entity, count, exc_info=True)
            raise GenerationError(entity, str(exc) or type(exc).__name__) from exc

        if len(instances) != count:
            raise GenerationError(entity, f"model produced {len(instances)} of {count} instances")
        return instances


__all__ = ["Generator", "model_entity_name", "reseed"]
