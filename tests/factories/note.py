"""Entity factories for the dataclass entities."""

from __future__ import annotations

from entity_factory import EntityFactory
from tests.models import Note, Ticket


class NoteFactory(EntityFactory[Note]):
    """Use the derived default model; ids come from the repository."""

    def after_instantiate(self, entity: Note) -> Note:
        entity.id = None
        return entity


class TicketFactory(EntityFactory[Ticket]):
    """Entity without default construction (probe strategy matters)."""
