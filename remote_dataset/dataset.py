"""
Remotely backed dataset.

A dataset lets a domain object treat a handful of named attributes whose
authoritative values live in a slow, pay-per-write remote store as local
fields. It may be in one of the following states:

- fresh: purely in-memory object with no fields
- unsynced: fields are bound and may be set locally, nothing was loaded
  from or propagated to the remote store yet
- deployed: the backing record exists remotely, so remote getters and
  setters may be called
- obsolete: the backing record was destroyed and nothing may touch the
  dataset anymore

The first ``get`` of a field that was never synced pulls the whole dataset
in one concurrent batch. Locally modified values always win over fetched
ones until they are committed by ``flush``, which calls each distinct
remote setter once.

Usage:

    >>> dataset = RemotelyBackedDataset.create_instance()
    >>> fields = dataset.bind(
    ...     {
    ...         "org_json_uri": FieldSpec(
    ...             remote_getter=contract.get_org_json_uri,
    ...             remote_setter=org.edit_info,
    ...         ),
    ...         "owner": FieldSpec(remote_getter=contract.owner),
    ...     },
    ...     owner=org,
    ... )
    >>> dataset.mark_deployed()
    >>> await fields.get("owner")
    >>> fields.set("org_json_uri", "https://example.com/org.json")
    >>> handles = await dataset.flush({"from": address})
"""

from __future__ import annotations

import itertools
from collections.abc import Mapping
from enum import Enum
from typing import Any

from .config import DatasetConfig
from .flush import FlushEngine
from .lifecycle import LifecycleFlags
from .logging_utils import DatasetLoggerAdapter, get_dataset_logger
from .registry import FieldRegistry
from .sync import ReadThroughSync
from .types import FieldSpec, FieldState, OperationHandle

FieldName = str | Enum
_instance_ids = itertools.count(1)


class BoundFields:
    """Typed accessor surface over the fields of one dataset.

    Returned by ``RemotelyBackedDataset.bind`` so the owning object can
    expose its fields without dynamic attribute tricks.
    """

    def __init__(self, dataset: RemotelyBackedDataset):
        self._dataset = dataset

    @property
    def names(self) -> list[str]:
        return self._dataset.field_names()

    def __contains__(self, name: object) -> bool:
        return name in self._dataset._registry

    async def get(self, name: FieldName) -> Any:
        return await self._dataset.get(name)

    def set(self, name: FieldName, value: Any) -> None:
        self._dataset.set(name, value)

    def state(self, name: FieldName) -> FieldState:
        return self._dataset.get_field_state(name)


class RemotelyBackedDataset:
    """Per-object cache of remotely stored fields.

    Tracks one FieldState per field, lazily syncs on first read,
    single-flights concurrent syncs and deduplicates setter calls on flush.
    """

    @classmethod
    def create_instance(cls, config: DatasetConfig | None = None) -> RemotelyBackedDataset:
        """Generic factory method."""
        return cls(config)

    def __init__(self, config: DatasetConfig | None = None):
        self.config = config or DatasetConfig()
        self._registry = FieldRegistry()
        self._flags = LifecycleFlags()
        self._accessor: BoundFields | None = None
        self.logger = DatasetLoggerAdapter(
            get_dataset_logger("dataset"),
            {"dataset": self.config.name or f"dataset-{next(_instance_ids)}"},
        )
        self._reader = ReadThroughSync(self._registry, self._flags, self.config, self.logger)
        self._writer = FlushEngine(
            self._registry, self._flags, self._reader, self.config, self.logger
        )

    def __repr__(self) -> str:
        return (
            f"RemotelyBackedDataset(name={self.logger.extra['dataset']!r}, "
            f"fields={self._registry.names()!r}, deployed={self.is_deployed()}, "
            f"obsolete={self.is_obsolete()})"
        )

    def bind(
        self,
        fields: Mapping[FieldName, FieldSpec | Mapping[str, Any] | None],
        owner: object | None = None,
    ) -> BoundFields:
        """Register the dataset's fields.

        Every field is declared once, with an optional remote getter and
        remote setter, for example:

            {
                "org_json_uri": FieldSpec(
                    remote_getter=contract.get_org_json_uri,
                    # usually returns transaction data
                    remote_setter=org.edit_info,
                ),
            }

        All fields start unsynced, so the first ``get`` of any of them syncs
        the whole dataset if it is deployed.

        Args:
            fields: Mapping of field name to FieldSpec (or a mapping with
                ``remote_getter``/``remote_setter`` keys)
            owner: Object the fields belong to; only used to label logs

        Returns:
            Accessor for the bound fields

        Raises:
            DatasetBindingError: If the dataset is already bound
        """
        self._registry.bind(fields)
        if owner is not None and self.config.name is None:
            self.logger.extra["dataset"] = f"{type(owner).__name__}@{id(owner):x}"
        self.logger.debug(f"Bound {len(self._registry)} fields")
        self._accessor = BoundFields(self)
        return self._accessor

    @property
    def fields(self) -> BoundFields:
        """Accessor for the bound fields, available after ``bind``."""
        if self._accessor is None:
            self._accessor = BoundFields(self)
        return self._accessor

    def field_names(self) -> list[str]:
        return self._registry.names()

    def is_obsolete(self) -> bool:
        """Is the dataset marked as obsolete?"""
        return self._flags.obsolete

    def mark_obsolete(self) -> None:
        """Mark the dataset as obsolete.

        Typically called after the remote record is destroyed or made
        inaccessible. Nothing is propagated anywhere; the flag only blocks
        further interaction with this object.
        """
        self._flags.mark_obsolete()

    def is_deployed(self) -> bool:
        """Is the dataset deployed to the remote store?"""
        return self._flags.deployed

    def mark_deployed(self) -> None:
        """Mark the dataset as deployed.

        Typically called once the remote record is created or connected to.
        """
        self._flags.mark_deployed()

    async def get(self, name: FieldName) -> Any:
        """Return a field's current value.

        If the field was never synced and the dataset is deployed, the whole
        dataset is synced first. A locally modified value is returned as is.

        Raises:
            ObsoleteAccessError: If the dataset is obsolete
            UnknownFieldError: If the field was never bound
            RemoteReadError: If the triggered sync failed
        """
        return await self._reader.get(name)

    def set(self, name: FieldName, value: Any) -> None:
        """Set a field locally and mark it dirty.

        The value is served by ``get`` even after later syncs, until a flush
        commits it.

        Raises:
            ObsoleteAccessError: If the dataset is obsolete
            UnknownFieldError: If the field was never bound
        """
        self._reader.set(name, value)

    async def sync(self) -> None:
        """Pull every unsynced field from the remote store.

        Concurrent calls share a single in-flight sync.
        """
        await self._reader.sync()

    async def flush(self, options: Any = None) -> list[OperationHandle]:
        """Commit dirty fields through their remote setters.

        Calls are deduplicated, so a setter updating several fields is
        called only once. See ``FlushEngine.flush``.
        """
        return await self._writer.flush(options)

    def get_field_state(self, name: FieldName) -> FieldState:
        return self._registry.state(name)

    def dirty_fields(self) -> list[str]:
        return self._registry.fields_in_state(FieldState.DIRTY)

    def is_syncing(self) -> bool:
        return self._reader.in_flight

    def stats(self) -> dict[str, Any]:
        """
        Get dataset statistics.

        Returns:
            Dict with lifecycle flags, field counts per state and sync status
        """
        return {
            "deployed": self.is_deployed(),
            "obsolete": self.is_obsolete(),
            "fields": len(self._registry),
            "states": self._registry.state_counts(),
            "syncing": self.is_syncing(),
        }
