"""Example probes: turn a customizer into a partial-match :class:`Criteria`.

Two strategies are available:

``recording`` (default)
    The customizer runs against a :class:`RecordingProbe` proxy that records
    every attribute assignment. Only assigned fields are constrained, so an
    explicit ``None`` is a real constraint and the entity never needs a
    no-argument constructor.

``instance``
    The customizer runs against a default-constructed entity; every known
    field that is not ``None`` and differs from a pristine default instance
    becomes a constraint. A field explicitly set to ``None`` (or to its
    default) cannot be told apart from an untouched one and stays
    unconstrained.

Probes are never persisted nor handed back to callers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from entity_factory.core.errors import ProbeConstructionError
from entity_factory.customizer import Customizer
from entity_factory.model import field_names

RECORDING = "recording"
INSTANCE = "instance"
STRATEGIES = frozenset({RECORDING, INSTANCE})

_MISSING = object()


@dataclass(frozen=True, slots=True)
class Criteria:
    """Immutable ``field -> expected value`` match rules.

    :param entity_type: Entity class the criteria apply to.
    :type entity_type: type
    :param filters: Constrained fields; absent fields are wildcards.
    :type filters: Mapping[str, Any]
    :param snapshot: Field values the probe reported when the criteria were
        built (assigned fields, or every inspected field for ``instance``).
    :type snapshot: Mapping[str, Any]
    """

    entity_type: type
    filters: Mapping[str, Any]
    snapshot: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def is_empty(self) -> bool:
        """``True`` when every candidate matches."""
        return not self.filters

    def matches(self, candidate: Any) -> bool:
        """Return ``True`` if ``candidate`` equals every constrained value."""
        return all(getattr(candidate, name, _MISSING) == value for name, value in self.filters.items())


class RecordingProbe:
    """Stand-in entity recording attribute assignments."""

    def __init__(self, entity_type: type) -> None:
        object.__setattr__(self, "_entity_type", entity_type)
        object.__setattr__(self, "_allowed", field_names(entity_type))
        object.__setattr__(self, "_assigned", {})

    def __setattr__(self, name: str, value: Any) -> None:
        allowed = self._allowed
        if allowed is not None and name not in allowed:
            raise AttributeError(f"{self._entity_type.__name__} has no field {name!r}")
        self._assigned[name] = value

    def __getattr__(self, name: str) -> Any:
        # Only reached for names missing from the instance/class dicts
        assigned = object.__getattribute__(self, "_assigned")
        if name in assigned:
            return assigned[name]
        entity_type = object.__getattribute__(self, "_entity_type")
        raise AttributeError(
            f"{entity_type.__name__}.{name} was read before being assigned on the probe; "
            "use the 'instance' probe strategy for customizers that read fields"
        )

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of the recorded assignments."""
        return dict(self._assigned)


def _construct(entity_type: type) -> Any:
    try:
        return entity_type()
    except (TypeError, ValueError) as exc:
        raise ProbeConstructionError(entity_type.__name__, f"no default construction: {exc}") from exc


class ExampleProbe:
    """Build :class:`Criteria` from customizers."""

    def __init__(self, strategy: str = RECORDING) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown probe strategy {strategy!r}; expected one of {sorted(STRATEGIES)}")
        self.strategy = strategy

    def build_criteria(self, entity_type: type, customizer: Customizer[Any]) -> Criteria:
        """Apply ``customizer`` to a disposable probe and derive the criteria.

        :param entity_type: Entity class.
        :type entity_type: type
        :param customizer: Caller customizer.
        :type customizer: Customizer
        :returns: Criteria constraining exactly the fields the probe reports.
        :rtype: Criteria
        :raises ProbeConstructionError: If the probe cannot be built.
        """
        if self.strategy == INSTANCE:
            snapshot, filters = self._from_instance(entity_type, customizer)
        else:
            snapshot = self._from_recording(entity_type, customizer)
            filters = dict(snapshot)
        return Criteria(
            entity_type=entity_type,
            filters=MappingProxyType(filters),
            snapshot=MappingProxyType(snapshot),
        )

    @staticmethod
    def _from_recording(entity_type: type, customizer: Customizer[Any]) -> dict[str, Any]:
        probe = RecordingProbe(entity_type)
        try:
            result = customizer(probe)
        except (TypeError, ValueError) as exc:
            # e.g. ``dataclasses.replace`` needs a real instance
            raise ProbeConstructionError(
                entity_type.__name__,
                f"customizer failed on the recording probe ({exc}); use the 'instance' probe strategy",
            ) from exc
        if result is not None and result is not probe:
            raise ProbeConstructionError(
                entity_type.__name__,
                "customizer returned a new object; use the 'instance' probe strategy",
            )
        return probe.snapshot()

    @staticmethod
    def _from_instance(
        entity_type: type, customizer: Customizer[Any]
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        pristine = _construct(entity_type)
        probe = _construct(entity_type)
        result = customizer(probe)
        if result is not None:
            probe = result

        names = field_names(entity_type)
        if names is None:
            names = frozenset(n for n in vars(probe) if not n.startswith("_"))

        snapshot: dict[str, Any] = {}
        filters: dict[str, Any] = {}
        for name in sorted(names):
            value = snapshot[name] = getattr(probe, name, None)
            if value is not None and value != getattr(pristine, name, None):
                filters[name] = value
        return snapshot, filters


__all__ = ["Criteria", "ExampleProbe", "RecordingProbe", "RECORDING", "INSTANCE"]
