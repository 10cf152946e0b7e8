"""Repositories used by entity factories to persist and look up entities.

The factory only needs a small contract (:class:`Repository`):

* ``save(entity)`` returns the stored representation (may differ from input).
* ``find_page(criteria, limit)`` returns at most ``limit`` entities matching
  ``criteria`` (``None`` means no filter), in a backend-defined order.
* ``find_one(criteria)`` returns one matching entity or ``None``.
* ``save_all(entities)`` is optional; when present, batch saves use it.

Two implementations ship with the package:

* :class:`InMemoryRepository` keeps entities in a list (unit tests, fakes).
* :class:`SQLAlchemyRepository` targets a SQLAlchemy 2.x mapped class.

Design decisions
----------------
* Repositories remain thin and persistence-focused; they never call
  commit/rollback. The session owner defines the transaction.
* Sorting is opt-in per repository via ``_sortable_fields``; the primary key
  is always the final tiebreaker so pages are deterministic.
* Driver errors are re-raised as :class:`PersistenceError` with the original
  exception chained.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Generic, Protocol, TypeVar, cast

from sqlalchemy import Select, and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import InstrumentedAttribute, Session

from entity_factory.core.database import SessionRegistry
from entity_factory.core.errors import PersistenceError
from entity_factory.probe import Criteria

E = TypeVar("E")

log = logging.getLogger(__name__)


class Repository(Protocol[E]):
    """Minimal persistence contract consumed by entity factories."""

    def save(self, entity: E) -> E: ...

    def find_page(self, criteria: Criteria | None, limit: int) -> Sequence[E]: ...

    def find_one(self, criteria: Criteria) -> E | None: ...


# ----------------------------- In-memory store -------------------------------


class InMemoryRepository(Generic[E]):
    """List-backed repository preserving insertion order.

    Individual operations are serialized with a lock; a sequence of calls
    (such as a factory's find-then-create) is not.
    """

    def __init__(self, *, id_attr: str | None = "id") -> None:
        """Initialise an empty store.

        :param id_attr: Attribute receiving an incrementing id on save when it
            exists and is ``None``. ``None`` disables id assignment.
        :type id_attr: str | None
        """
        self.id_attr = id_attr
        self._rows: list[E] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def save(self, entity: E) -> E:
        with self._lock:
            if (
                self.id_attr is not None
                and hasattr(entity, self.id_attr)
                and getattr(entity, self.id_attr) is None
            ):
                setattr(entity, self.id_attr, next(self._ids))
            if not any(row is entity for row in self._rows):
                self._rows.append(entity)
        return entity

    def save_all(self, entities: Iterable[E]) -> list[E]:
        return [self.save(entity) for entity in entities]

    def find_page(self, criteria: Criteria | None, limit: int) -> list[E]:
        with self._lock:
            rows = list(self._rows)
        matching = [row for row in rows if criteria is None or criteria.matches(row)]
        return matching[: max(int(limit), 0)]

    def find_one(self, criteria: Criteria) -> E | None:
        page = self.find_page(criteria, 1)
        return page[0] if page else None

    def count(self) -> int:
        with self._lock:
            return len(self._rows)

    def all(self) -> list[E]:
        """Return a copy of every stored entity, in insertion order."""
        with self._lock:
            return list(self._rows)

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()


# ----------------------------- Sorting utilities -----------------------------


def parse_sort_tokens(raw: Iterable[str]) -> list[tuple[str, bool]]:
    """Parse public sort tokens into ``(field, is_desc)`` tuples.

    :param raw: Public tokens like ``["-price", "title"]``.
    :type raw: Iterable[str]
    :returns: List of ``(field_name, is_desc)`` tokens.
    :rtype: list[tuple[str, bool]]
    """
    parsed: list[tuple[str, bool]] = []
    for token in raw:
        is_desc = token.startswith("-")
        field = token[1:] if is_desc else token
        field = field.strip()
        if field:
            parsed.append((field, is_desc))
    return parsed


def _apply_sorting(
    stmt: Select[Any],
    sortable_fields: Mapping[str, InstrumentedAttribute[Any]],
    tokens: Iterable[str],
    *,
    pk_attr: InstrumentedAttribute[Any] | None,
) -> Select[Any]:
    """Apply safe ``ORDER BY`` clauses based on a whitelist mapping.

    Unknown sort tokens are ignored silently. The model's primary key is always
    appended as a final ascending tiebreaker to stabilize pages.

    :param stmt: Base selectable.
    :type stmt: :class:`sqlalchemy.sql.Select`
    :param sortable_fields: Public field → SQLAlchemy attribute mapping.
    :type sortable_fields: Mapping[str, InstrumentedAttribute]
    :param tokens: Public sort tokens (e.g., ``["-price"]``).
    :type tokens: Iterable[str]
    :param pk_attr: Primary-key attribute used as a tiebreaker.
    :type pk_attr: InstrumentedAttribute | None
    :returns: Modified select with ``ORDER BY`` clauses.
    :rtype: :class:`sqlalchemy.sql.Select`
    """
    orders: list[Any] = []
    for field, is_desc in parse_sort_tokens(tokens):
        col = sortable_fields.get(field)
        if isinstance(col, InstrumentedAttribute):
            orders.append(col.desc() if is_desc else col.asc())

    if orders:
        stmt = stmt.order_by(*orders)

    if pk_attr is not None:
        stmt = stmt.order_by(pk_attr.asc())

    return stmt


# ---------------------------- SQLAlchemy store -------------------------------


class SQLAlchemyRepository(Generic[E]):
    """Persistence-only repository for a single SQLAlchemy mapped class.

    Subclasses MAY set ``model`` as a class attribute instead of passing it.

    Subclasses MAY override:

    * ``_sortable_fields`` to expose safe sort keys.
    * ``_filterable_fields`` to restrict which fields criteria may constrain.
    * ``default_sort`` to change the page order (primary key otherwise).

    This class NEVER opens, commits or rolls back transactions.
    """

    #: SQLAlchemy mapped model (set by subclasses or the constructor)
    model: type[E]

    #: Public sort tokens applied to every page
    default_sort: tuple[str, ...] = ()

    def __init__(self, model: type[E] | None = None, session: Session | None = None) -> None:
        """Initialise the repository.

        When no explicit session is provided the repository falls back to the
        session registered in :class:`~entity_factory.core.database.SessionRegistry`.

        :param model: Mapped class (required unless set on the subclass).
        :type model: type | None
        :param session: Session owned by the caller.
        :type session: :class:`sqlalchemy.orm.Session` | None
        :raises TypeError: If no model is available.
        """
        if model is not None:
            self.model = model
        if getattr(self, "model", None) is None:
            raise TypeError(f"{type(self).__name__} requires a mapped model class.")
        self._session: Session | None = session

    # ------------------------------ Session access ---------------------------

    @property
    def session(self) -> Session:
        """Return the injected session or the registered one.

        :returns: Active session.
        :rtype: :class:`sqlalchemy.orm.Session`
        """
        if self._session is not None:
            return self._session
        return SessionRegistry.get()

    # ------------------------------ Extensibility ----------------------------

    def _pk_attr(self) -> InstrumentedAttribute[Any] | None:
        """Return the model's primary-key attribute, defaulting to ``model.id``."""
        return getattr(self.model, "id", None)

    def _sortable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist mapping of public sort keys to model attributes."""
        return {}

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]] | None:
        """Optional whitelist of equality-filterable fields.

        ``None`` (default) filters on any model attribute via ``getattr``.
        With a mapping, criteria naming any other field are rejected with a
        :class:`PersistenceError`: dropping a constraint silently would return
        entities the caller did not ask for.
        """
        return None

    # ------------------------------ Internals --------------------------------

    @property
    def _entity_name(self) -> str:
        return self.model.__name__

    def _failure(self, operation: str, exc: SQLAlchemyError) -> PersistenceError:
        log.warning(
            "Persistence failure: entity=%s operation=%s",
            self._entity_name,
            operation,
            extra={"entity": self._entity_name, "operation": operation},
        )
        detail = str(getattr(exc, "orig", None) or exc)
        return PersistenceError(self._entity_name, operation, detail)

    def _apply_equality_filters(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any] | None,
    ) -> Select[Any]:
        """Apply equality filters (``None`` values become ``IS NULL``).

        :param stmt: Input select to filter.
        :type stmt: :class:`sqlalchemy.sql.Select`
        :param filters: Field=value mapping (equality only).
        :type filters: Mapping[str, Any] | None
        :returns: Filtered select.
        :rtype: :class:`sqlalchemy.sql.Select`
        :raises PersistenceError: If a field is not filterable.
        """
        if not filters:
            return stmt

        allowed = self._filterable_fields()
        clauses: list[Any] = []
        for key, value in filters.items():
            col = getattr(self.model, key, None) if allowed is None else allowed.get(key)
            if not isinstance(col, InstrumentedAttribute):
                raise PersistenceError(self._entity_name, "find", f"field {key!r} is not filterable")
            clauses.append(col == value)
        return stmt.where(and_(*clauses))

    def _select(self, criteria: Criteria | None) -> Select[Any]:
        stmt: Select[Any] = select(self.model)
        return self._apply_equality_filters(stmt, criteria.filters if criteria else None)

    # --------------------------------- Writes ---------------------------------

    def save(self, entity: E) -> E:
        """Stage ``entity`` and flush to materialize its primary key.

        :param entity: Transient or persistent entity.
        :type entity: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        :raises PersistenceError: If the flush fails.
        """
        try:
            self.session.add(entity)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise self._failure("save", exc) from exc
        return entity

    def save_all(self, entities: Iterable[E]) -> list[E]:
        """Stage every entity and flush once.

        :param entities: Entities to persist.
        :type entities: Iterable[E]
        :returns: The same instances, in input order.
        :rtype: list[E]
        :raises PersistenceError: If the flush fails (no entity is flushed).
        """
        items = list(entities)
        try:
            self.session.add_all(items)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise self._failure("save_all", exc) from exc
        return items

    # --------------------------------- Reads ----------------------------------

    def find_page(
        self,
        criteria: Criteria | None,
        limit: int,
        *,
        sort: Iterable[str] | None = None,
    ) -> list[E]:
        """Return up to ``limit`` entities matching ``criteria``.

        :param criteria: Equality criteria, or ``None`` for all rows.
        :type criteria: Criteria | None
        :param limit: Maximum number of rows.
        :type limit: int
        :param sort: Public sort tokens (defaults to ``default_sort``).
        :type sort: Iterable[str] | None
        :returns: Matching entities in stable order.
        :rtype: list[E]
        :raises PersistenceError: If the query fails.
        """
        stmt = self._select(criteria)
        tokens = self.default_sort if sort is None else sort
        stmt = _apply_sorting(stmt, self._sortable_fields(), tokens, pk_attr=self._pk_attr())
        stmt = stmt.limit(max(int(limit), 0))
        try:
            results = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            raise self._failure("find_page", exc) from exc
        return cast(list[E], list(results))

    def find_one(self, criteria: Criteria) -> E | None:
        """Return the first entity matching ``criteria`` or ``None``."""
        page = self.find_page(criteria, 1)
        return page[0] if page else None

    def count(self, criteria: Criteria | None = None) -> int:
        """Count rows, optionally restricted by ``criteria``.

        :raises PersistenceError: If the query fails.
        """
        stmt = self._select(criteria)
        count_stmt = select(func.count()).select_from(stmt.subquery())
        try:
            return int(self.session.execute(count_stmt).scalar_one())
        except SQLAlchemyError as exc:
            raise self._failure("count", exc) from exc


__all__ = [
    "Repository",
    "InMemoryRepository",
    "SQLAlchemyRepository",
    "parse_sort_tokens",
]
