"""Entity factories: generate, customize, persist and reuse test entities.

Usage example::

    class BookFactory(SQLAlchemyEntityFactory[Book]):
        model = BookModel

    books = BookFactory(session)

    books.make(3)                                # unpersisted
    books.create_one_with(assign(title="Dune"))  # persisted
    books.random(5)                              # reuse existing rows, create the gap
    books.random_with(5, assign(author="Le Guin"))

Entity lifecycle: *generated* → *customized* (optional) → *persisted*.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Generic, TypeVar

import factory
from sqlalchemy.orm import Session

from entity_factory.customizer import Customizer, apply_customizer
from entity_factory.generator import Generator
from entity_factory.model import default_model
from entity_factory.probe import ExampleProbe, RECORDING
from entity_factory.repository import Repository, SQLAlchemyRepository
from entity_factory.resolver import resolve

T = TypeVar("T")

log = logging.getLogger(__name__)


def _check_count(count: int) -> None:
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")


def _first(items: Sequence[T]) -> T:
    return items[0]


class EntityFactory(Generic[T]):
    """Generate entities with random values and persist them via a repository.

    Subclasses bind the entity type through the generic parameter
    (``EntityFactory[Book]``), an ``entity_type`` class attribute or the
    ``entity_type=`` constructor argument.

    Subclasses MAY override:

    * ``model`` / :meth:`get_model` to customize the generation rules.
    * :meth:`after_instantiate` to post-process every generated entity
      (clear ids, compute derived fields...).
    * ``probe_strategy`` (``"recording"`` or ``"instance"``).

    Counts of ``0`` return an empty list without touching the repository or
    the generator; negative counts raise ``ValueError``.
    """

    #: Entity class; resolved from the generic parameter when left unset
    entity_type: type[T] | None = None

    #: Factory Boy model; a default one is derived from the entity's fields when unset
    model: type[factory.Factory] | None = None

    #: How ``*_with`` lookups turn customizers into criteria
    probe_strategy: str = RECORDING

    def __init__(
        self,
        repository: Repository[T],
        *,
        entity_type: type[T] | None = None,
        generator: Generator | None = None,
        probe: ExampleProbe | None = None,
    ) -> None:
        """Initialise the factory.

        :param repository: Store used to persist and look up entities.
        :type repository: Repository
        :param entity_type: Explicit entity class (skips generic resolution).
        :type entity_type: type | None
        :param generator: Instance generator (a default one otherwise).
        :type generator: Generator | None
        :param probe: Criteria builder (``probe_strategy`` otherwise).
        :type probe: ExampleProbe | None
        :raises TypeResolutionError: If the entity type cannot be resolved.
        """
        self.entity_type = entity_type if entity_type is not None else resolve(self, EntityFactory)
        self.repository = repository
        self.generator = generator if generator is not None else Generator()
        self.probe = probe if probe is not None else ExampleProbe(self.probe_strategy)
        self._model: type[factory.Factory] | None = None

    @property
    def _entity_name(self) -> str:
        return self.entity_type.__name__

    # ------------------------------ Extensibility ----------------------------

    def get_model(self) -> type[factory.Factory]:
        """Return the model used to generate entities.

        Override to narrow the rules, e.g.::

            def get_model(self):
                return override(super().get_model(), price=factory.Faker("pyfloat", min_value=1, max_value=100))
        """
        if self._model is None:
            self._model = self.model if self.model is not None else default_model(self.entity_type)
        return self._model

    def after_instantiate(self, entity: T) -> T:
        """Hook applied to every generated entity before customization.

        The default implementation returns the entity unchanged.
        """
        return entity

    # ------------------------------ Instantiation ----------------------------

    def make(self, count: int) -> list[T]:
        """Instantiate ``count`` random entities **without persisting them**.

        :raises GenerationError: If the model cannot produce the entities.
        """
        _check_count(count)
        if count == 0:
            return []
        generated = self.generator.generate(self.get_model(), count)
        return [self.after_instantiate(entity) for entity in generated]

    def make_with(self, count: int, customizer: Customizer[T]) -> list[T]:
        """Instantiate ``count`` random entities, then apply ``customizer`` to each.

        The customizer runs after :meth:`after_instantiate` and may overwrite
        any generated value, identifiers included.
        """
        return [apply_customizer(customizer, entity) for entity in self.make(count)]

    # ------------------------------ Persistence ------------------------------

    def save(self, entity: T) -> T:
        """Persist one entity through the repository."""
        return self.repository.save(entity)

    def save_all(self, entities: Iterable[T]) -> list[T]:
        """Persist several entities, preferring the repository's batch primitive."""
        batch = getattr(self.repository, "save_all", None)
        if callable(batch):
            return list(batch(entities))
        return [self.save(entity) for entity in entities]

    def create(self, count: int) -> list[T]:
        """Instantiate and persist ``count`` random entities, one save at a time.

        Entities saved before a failing one stay persisted; the
        :class:`~entity_factory.core.errors.PersistenceError` propagates and
        the remaining entities are not saved.
        """
        return [self.save(entity) for entity in self.make(count)]

    def create_with(self, count: int, customizer: Customizer[T]) -> list[T]:
        """Instantiate, customize and persist ``count`` entities."""
        return [self.save(entity) for entity in self.make_with(count, customizer)]

    # ------------------------------ Find-or-create ---------------------------

    def random(self, count: int) -> list[T]:
        """Return ``count`` entities, reusing stored ones and creating the gap.

        Existing entities come first, followed by the newly created ones.

        The lookup and the creation are separate repository calls with no
        isolation between them: two concurrent callers can both see a
        shortfall and both create filler entities. Consistency is whatever the
        backing store provides.
        """
        _check_count(count)
        if count == 0:
            return []
        existing = list(self.repository.find_page(None, count))
        return self._fill(existing, count, self.create)

    def random_with(self, count: int, customizer: Customizer[T]) -> list[T]:
        """Return ``count`` entities matching the fields ``customizer`` sets.

        Stored entities are looked up with the criteria derived from the
        customizer; missing ones are created with the same customizer, so every
        returned entity satisfies the request. Same race as :meth:`random`.

        :raises ProbeConstructionError: If the criteria cannot be derived.
        """
        _check_count(count)
        if count == 0:
            return []
        criteria = self.probe.build_criteria(self.entity_type, customizer)
        existing = list(self.repository.find_page(criteria, count))
        return self._fill(existing, count, lambda missing: self.create_with(missing, customizer))

    def find_or_create(self, customizer: Customizer[T]) -> T:
        """Return one stored entity matching ``customizer``, creating it if absent."""
        criteria = self.probe.build_criteria(self.entity_type, customizer)
        found = self.repository.find_one(criteria)
        if found is not None:
            log.debug("find_or_create: reusing stored %s", self._entity_name, extra={"entity": self._entity_name})
            return found
        return _first(self.create_with(1, customizer))

    def _fill(self, existing: list[T], count: int, create: Callable[[int], list[T]]) -> list[T]:
        missing = count - len(existing)
        log.debug(
            "find-or-create: entity=%s requested=%s found=%s missing=%s",
            self._entity_name,
            count,
            len(existing),
            max(missing, 0),
            extra={
                "entity": self._entity_name,
                "requested": count,
                "found": len(existing),
                "missing": max(missing, 0),
            },
        )
        if missing > 0:
            existing.extend(create(missing))
        return existing

    # ------------------------------ Single results ---------------------------

    def make_one(self) -> T:
        return _first(self.make(1))

    def make_one_with(self, customizer: Customizer[T]) -> T:
        return _first(self.make_with(1, customizer))

    def create_one(self) -> T:
        return _first(self.create(1))

    def create_one_with(self, customizer: Customizer[T]) -> T:
        return _first(self.create_with(1, customizer))

    def random_one(self) -> T:
        return _first(self.random(1))

    def random_one_with(self, customizer: Customizer[T]) -> T:
        return _first(self.random_with(1, customizer))


class SQLAlchemyEntityFactory(EntityFactory[T]):
    """Entity factory persisting through a :class:`SQLAlchemyRepository`.

    Without an explicit session the repository uses the session registered in
    :class:`~entity_factory.core.database.SessionRegistry`. Entities are
    flushed, never committed.
    """

    repository: SQLAlchemyRepository[T]

    def __init__(
        self,
        session: Session | None = None,
        *,
        entity_type: type[T] | None = None,
        generator: Generator | None = None,
        probe: ExampleProbe | None = None,
    ) -> None:
        if entity_type is None:
            entity_type = resolve(self, EntityFactory)
        super().__init__(
            SQLAlchemyRepository(entity_type, session=session),
            entity_type=entity_type,
            generator=generator,
            probe=probe,
        )


__all__ = ["EntityFactory", "SQLAlchemyEntityFactory"]
