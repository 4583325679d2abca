"""
Field registry for remotely backed datasets.

Holds the declared getter/setter of every field together with its
synchronization state, last local value and last fetched remote value.
Pure bookkeeping: nothing here talks to the remote store.
"""

from __future__ import annotations

import inspect
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any

from .exceptions import DatasetBindingError, UnknownFieldError
from .types import FieldSpec, FieldState, RemoteSetter

MISSING = object()


def field_key(name: str | Enum) -> str:
    """Normalize a field identifier, accepting str-valued enum members."""
    if isinstance(name, Enum):
        return str(name.value)
    return name


def setter_identity(setter: RemoteSetter) -> object:
    """Identity key of a setter; bound methods are keyed by instance and function."""
    if inspect.ismethod(setter):
        return (id(setter.__self__), id(setter.__func__))
    return id(setter)


class FieldRegistry:
    """Per-dataset table of field declarations, states and values."""

    def __init__(self) -> None:
        self._specs: dict[str, FieldSpec] = {}
        self._states: dict[str, FieldState] = {}
        self._local: dict[str, Any] = {}
        self._remote: dict[str, Any] = {}
        self._bound = False

    @property
    def bound(self) -> bool:
        return self._bound

    def bind(self, fields: Mapping[str | Enum, FieldSpec | Mapping[str, Any] | None]) -> None:
        """Register every field once and mark it unsynced.

        Args:
            fields: Mapping of field name to its declaration. Iteration order
                becomes the canonical field order.

        Raises:
            DatasetBindingError: If fields were already bound
        """
        if self._bound:
            raise DatasetBindingError("dataset is already bound")

        specs: dict[str, FieldSpec] = {}
        for name, declaration in fields.items():
            key = field_key(name)
            if key in specs:
                raise DatasetBindingError(f"field {key!r} declared twice")
            specs[key] = FieldSpec.from_value(declaration)

        self._specs = specs
        self._states = {key: FieldState.UNSYNCED for key in specs}
        self._bound = True

    def names(self) -> list[str]:
        """Field names in canonical order."""
        return list(self._specs)

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __contains__(self, name: object) -> bool:
        if isinstance(name, Enum):
            name = name.value
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def require(self, name: str | Enum) -> str:
        """Return the normalized key, raising UnknownFieldError if unbound."""
        key = field_key(name)
        if key not in self._specs:
            raise UnknownFieldError(key)
        return key

    def spec(self, name: str | Enum) -> FieldSpec:
        return self._specs[self.require(name)]

    def state(self, name: str | Enum) -> FieldState:
        return self._states[self.require(name)]

    def set_state(self, name: str, state: FieldState) -> None:
        self._states[self.require(name)] = state

    def local_value(self, name: str | Enum) -> Any:
        return self._local.get(self.require(name))

    def set_local_value(self, name: str, value: Any) -> None:
        self._local[self.require(name)] = value

    def remote_value(self, name: str, default: Any = MISSING) -> Any:
        return self._remote.get(self.require(name), default)

    def set_remote_value(self, name: str, value: Any) -> None:
        self._remote[self.require(name)] = value

    def fields_in_state(self, state: FieldState) -> list[str]:
        """Names currently in ``state``, canonical order."""
        return [name for name in self._specs if self._states[name] is state]

    def fetchable_fields(self) -> list[str]:
        """Unsynced fields that declare a remote getter."""
        return [
            name
            for name, spec in self._specs.items()
            if spec.remote_getter is not None and self._states[name] is FieldState.UNSYNCED
        ]

    def dirty_setter_groups(self) -> list[tuple[RemoteSetter, list[str]]]:
        """Group dirty fields by the identity of their remote setter.

        Returns one ``(setter, fields)`` pair per distinct setter, in the
        canonical order of each setter's first dirty field. Setters are
        never compared by value: plain callables are keyed by identity and
        bound methods by their instance and function, so ``obj.commit``
        declared on two fields is still one setter. Specs hold every setter,
        so the ids stay unique while grouping.
        """
        groups: dict[object, tuple[RemoteSetter, list[str]]] = {}
        for name, spec in self._specs.items():
            setter = spec.remote_setter
            if setter is None or self._states[name] is not FieldState.DIRTY:
                continue
            group = groups.setdefault(setter_identity(setter), (setter, []))
            group[1].append(name)
        return list(groups.values())

    def state_counts(self) -> dict[str, int]:
        counts = {state.value: 0 for state in FieldState}
        for state in self._states.values():
            counts[state.value] += 1
        return counts

