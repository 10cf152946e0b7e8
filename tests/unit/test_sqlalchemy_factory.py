"""Integration-style tests for SQLAlchemyEntityFactory on SQLite."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from entity_factory import ExampleProbe, PersistenceError, SQLAlchemyEntityFactory, assign
from tests.factories.book import BookFactory
from tests.models import Book, Genre


def _count(session) -> int:
    return int(session.execute(select(func.count()).select_from(Book)).scalar_one())


@pytest.fixture()
def books(session):
    return BookFactory(session)


class TestSQLAlchemyEntityFactory:
    """Confirm factories persist through a SQLAlchemy session."""

    def test_create_one_on_empty_table(self, books, session):
        """One create -> database id and title populated, one row."""
        book = books.create_one()

        assert book.id is not None
        assert book.title is not None
        assert _count(session) == 1

    def test_make_does_not_insert(self, books, session):
        made = books.make(3)

        assert len(made) == 3
        assert all(b.id is None for b in made)
        assert _count(session) == 0

    def test_create_with_sets_values(self, books, session):
        created = books.create_with(5, assign(title="X"))

        assert len(created) == 5
        assert all(b.title == "X" for b in created)
        assert _count(session) == 5

    def test_random_with_combines_existing_and_new(self, books, session):
        """3 stored rows with title X; asking for 5 creates exactly 2."""
        existing = books.create_with(3, assign(title="X"))
        books.create_with(2, assign(title="other"))
        before = _count(session)

        result = books.random_with(5, assign(title="X"))

        assert len(result) == 5
        assert all(b.title == "X" for b in result)
        assert {b.id for b in existing} <= {b.id for b in result}
        assert _count(session) == before + 2

    def test_random_draws_from_table_when_enough_rows(self, books, session):
        books.create(4)

        result = books.random(3)

        assert len(result) == 3
        assert _count(session) == 4

    def test_random_on_empty_table(self, books, session):
        result = books.random(2)

        assert len(result) == 2
        assert _count(session) == 2

    def test_random_with_null_constraint(self, books):
        """``author=None`` becomes an ``IS NULL`` filter."""
        books.create_with(2, assign(author="Someone"))
        anonymous = books.create_one_with(assign(author=None))

        result = books.random_with(1, assign(author=None))

        assert [b.id for b in result] == [anonymous.id]

    def test_instance_probe_strategy(self, session):
        books = BookFactory(session, probe=ExampleProbe("instance"))
        books.create_with(2, assign(genre=Genre.POETRY))

        result = books.random_with(3, assign(genre=Genre.POETRY))

        assert len(result) == 3
        assert all(b.genre is Genre.POETRY for b in result)
        assert _count(session) == 3

    def test_duplicate_isbn_raises_persistence_error(self, books):
        with pytest.raises(PersistenceError) as excinfo:
            books.create_with(2, assign(isbn="978-0-00-000000-0"))

        assert isinstance(excinfo.value.__cause__, IntegrityError)
        assert excinfo.value.operation == "save"

    def test_session_from_registry(self, session):
        """Factories built without a session use the registered one."""
        books = BookFactory()
        books.create(2)

        assert _count(session) == 2

    def test_default_model_when_none_declared(self, session):
        books = SQLAlchemyEntityFactory(session, entity_type=Book)

        book = books.create_one()

        assert book.id is not None
        assert isinstance(book.genre, Genre)
        assert isinstance(book.in_print, bool)
        assert book.publisher_id is None

    def test_save_all_flushes_batch(self, books, session):
        saved = books.save_all(books.make(3))

        assert all(b.id is not None for b in saved)
        assert _count(session) == 3
