"""Unit tests for example probes and criteria."""

from __future__ import annotations

import dataclasses
from types import SimpleNamespace

import pytest

from entity_factory import Criteria, ExampleProbe, ProbeConstructionError, assign, chain
from entity_factory.probe import RecordingProbe
from tests.models import Book, Note, Ticket


class TestRecordingProbe:
    """Confirm the recording probe constrains exactly the assigned fields."""

    def test_records_only_assigned_fields(self):
        criteria = ExampleProbe().build_criteria(Note, assign(title="X"))
        assert dict(criteria.filters) == {"title": "X"}

    def test_explicit_none_is_recorded(self):
        criteria = ExampleProbe().build_criteria(Book, assign(author=None))
        assert dict(criteria.filters) == {"author": None}

    def test_unknown_field_is_rejected(self):
        with pytest.raises(AttributeError):
            ExampleProbe().build_criteria(Note, assign(titel="typo"))

    def test_read_after_assign(self):
        def customizer(note):
            note.title = "a"
            note.body = note.title + "!"

        criteria = ExampleProbe().build_criteria(Note, customizer)
        assert dict(criteria.filters) == {"title": "a", "body": "a!"}

    def test_read_before_assign_fails(self):
        with pytest.raises(AttributeError, match="instance"):
            ExampleProbe().build_criteria(Note, lambda n: setattr(n, "body", n.title))

    def test_no_default_constructor_needed(self):
        criteria = ExampleProbe().build_criteria(Ticket, assign(priority=1))
        assert dict(criteria.filters) == {"priority": 1}

    def test_returning_new_object_is_rejected(self):
        with pytest.raises(ProbeConstructionError):
            ExampleProbe().build_criteria(Note, lambda n: Note(title="x"))

    def test_replacing_customizer_is_reported(self):
        with pytest.raises(ProbeConstructionError, match="instance") as excinfo:
            ExampleProbe().build_criteria(Note, lambda n: dataclasses.replace(n, title="x"))
        assert isinstance(excinfo.value.__cause__, TypeError)

    def test_snapshot_holds_assigned_fields(self):
        criteria = ExampleProbe().build_criteria(Note, assign(title="X", body=None))
        assert dict(criteria.snapshot) == {"title": "X", "body": None}
        assert dict(criteria.filters) == dict(criteria.snapshot)

    def test_chained_customizers_accumulate(self):
        criteria = ExampleProbe().build_criteria(Note, chain(assign(title="a"), assign(pinned=True)))
        assert dict(criteria.filters) == {"title": "a", "pinned": True}

    def test_snapshot_is_a_copy(self):
        probe = RecordingProbe(Note)
        probe.title = "a"
        snap = probe.snapshot()
        snap["title"] = "b"
        assert probe.title == "a"


class TestInstanceProbe:
    """Confirm the instance probe diffs a customized instance against a pristine one."""

    def test_non_default_fields_are_constrained(self):
        criteria = ExampleProbe("instance").build_criteria(Note, assign(title="X", pinned=True))
        assert dict(criteria.filters) == {"pinned": True, "title": "X"}

    def test_default_values_are_unconstrained(self):
        """Setting a field to its default cannot be told apart from leaving it."""
        criteria = ExampleProbe("instance").build_criteria(Note, assign(pinned=False, title=""))
        assert criteria.is_empty

    def test_returned_instance_is_inspected(self):
        criteria = ExampleProbe("instance").build_criteria(
            Note, lambda n: dataclasses.replace(n, body="b")
        )
        assert dict(criteria.filters) == {"body": "b"}

    def test_snapshot_holds_every_inspected_field(self):
        criteria = ExampleProbe("instance").build_criteria(Note, assign(title="X"))
        assert dict(criteria.snapshot) == {"id": None, "title": "X", "body": "", "pinned": False}
        assert dict(criteria.filters) == {"title": "X"}

    def test_sqlalchemy_probe(self):
        criteria = ExampleProbe("instance").build_criteria(Book, assign(title="T"))
        assert dict(criteria.filters) == {"title": "T"}

    def test_requires_default_construction(self):
        with pytest.raises(ProbeConstructionError):
            ExampleProbe("instance").build_criteria(Ticket, assign(priority=1))


class TestCriteria:
    """Confirm ``Criteria`` matching and immutability."""

    def test_matches_constrained_fields_only(self):
        criteria = Criteria(Note, {"title": "X"})
        assert criteria.matches(Note(title="X", body="anything"))
        assert not criteria.matches(Note(title="Y"))

    def test_empty_criteria_match_everything(self):
        criteria = Criteria(Note, {})
        assert criteria.is_empty
        assert dict(criteria.snapshot) == {}
        assert criteria.matches(Note())

    def test_missing_attribute_never_matches(self):
        assert not Criteria(Note, {"title": None}).matches(SimpleNamespace())

    def test_filters_are_read_only(self):
        criteria = ExampleProbe().build_criteria(Note, assign(title="X"))
        with pytest.raises(TypeError):
            criteria.filters["title"] = "Y"


def test_unknown_strategy():
    with pytest.raises(ValueError):
        ExampleProbe("magic")
