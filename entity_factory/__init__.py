"""Generic test-entity factories.

Generate entities with random values (Factory Boy + Faker), customize them,
persist them through a repository and reuse stored ones on demand.
"""

from entity_factory.core.errors import (
    FactoryError,
    GenerationError,
    PersistenceError,
    ProbeConstructionError,
    TypeResolutionError,
)
from entity_factory.customizer import Customizer, apply_customizer, assign, chain
from entity_factory.factory import EntityFactory, SQLAlchemyEntityFactory
from entity_factory.generator import Generator
from entity_factory.model import default_model, exclude, override
from entity_factory.probe import Criteria, ExampleProbe
from entity_factory.repository import InMemoryRepository, Repository, SQLAlchemyRepository

__version__ = "0.1.0"

__all__ = [
    "Criteria",
    "Customizer",
    "EntityFactory",
    "ExampleProbe",
    "FactoryError",
    "GenerationError",
    "Generator",
    "InMemoryRepository",
    "PersistenceError",
    "ProbeConstructionError",
    "Repository",
    "SQLAlchemyEntityFactory",
    "SQLAlchemyRepository",
    "TypeResolutionError",
    "apply_customizer",
    "assign",
    "chain",
    "default_model",
    "exclude",
    "override",
]
