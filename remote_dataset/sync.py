"""
Read-through synchronization for remotely backed datasets.

The first read of an unsynced field pulls every unsynced remote-gettable
field in one concurrent batch. Concurrent reads share that batch, and
locally modified fields are never overwritten by fetched values.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .config import DatasetConfig
from .exceptions import RemoteReadError
from .lifecycle import LifecycleFlags
from .registry import MISSING, FieldRegistry
from .single_flight import SingleFlight
from .types import FieldState, resolve


async def gather_limited(calls: list, limit: int | None) -> list[Any]:
    """Await zero-argument async callables concurrently, at most ``limit`` at once.

    Waits for every call, then raises the first failure in call order, so no
    failure is left unretrieved.
    """
    if limit is None:
        awaitables = [call() for call in calls]
    else:
        semaphore = asyncio.Semaphore(limit)

        async def bounded(call):
            async with semaphore:
                return await call()

        awaitables = [bounded(call) for call in calls]

    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class ReadThroughSync:
    """Fetches and reconciles remote values into a FieldRegistry."""

    def __init__(
        self,
        registry: FieldRegistry,
        flags: LifecycleFlags,
        config: DatasetConfig,
        logger: logging.LoggerAdapter,
    ):
        self.registry = registry
        self.flags = flags
        self.config = config
        self.logger = logger
        self._flight: SingleFlight[None] = SingleFlight()

    @property
    def in_flight(self) -> bool:
        return self._flight.in_flight

    async def get(self, name: str) -> Any:
        """Return a field's value, syncing the dataset first if needed.

        Raises:
            ObsoleteAccessError: If the dataset is obsolete
            RemoteReadError: If the triggered sync failed
        """
        self.flags.ensure_usable("get")
        key = self.registry.require(name)
        if self.flags.deployed and self.registry.state(key) is FieldState.UNSYNCED:
            await self.sync()
        return self.registry.local_value(key)

    def set(self, name: str, value: Any) -> None:
        """Write a field locally and mark it dirty. No remote I/O."""
        self.flags.ensure_usable("set")
        key = self.registry.require(name)
        # A first write is always recorded, even if it equals the placeholder
        if (
            self.registry.state(key) is FieldState.UNSYNCED
            or self.registry.local_value(key) != value
        ):
            self.registry.set_local_value(key, value)
            self.registry.set_state(key, FieldState.DIRTY)

    async def sync(self) -> None:
        """Sync the dataset, joining a sync that is already running.

        Raises:
            ObsoleteAccessError: If the dataset is obsolete
            UndeployedAccessError: If the dataset was never deployed
            RemoteReadError: If any remote getter failed
        """
        self.flags.ensure_fetchable("sync")
        await self._flight.run(self._sync_once)

    async def _sync_once(self) -> None:
        fetched = await self._fetch()
        self._reconcile(fetched)

    async def _fetch(self) -> dict[str, Any]:
        """Call every pending remote getter; all results or none."""
        fields = self.registry.fetchable_fields()
        if not fields:
            return {}

        self.logger.debug(f"Fetching {len(fields)} fields", extra={"fields": fields})
        calls = [self._getter_call(name) for name in fields]
        try:
            values = await gather_limited(calls, self.config.max_concurrency)
        except Exception as e:
            self.logger.warning(f"Remote sync failed: {e}", extra={"fields": fields})
            raise RemoteReadError(e, fields) from e

        return dict(zip(fields, values))

    def _getter_call(self, name: str):
        getter = self.registry.spec(name).remote_getter

        async def call() -> Any:
            return await resolve(getter())

        return call

    def _reconcile(self, fetched: dict[str, Any]) -> None:
        for name, value in fetched.items():
            self.registry.set_remote_value(name, value)

        synced = []
        for name in self.registry:
            remote = self.registry.remote_value(name)
            if remote is MISSING:
                continue
            state = self.registry.state(name)
            if state is FieldState.DIRTY:
                continue
            if state is FieldState.UNSYNCED or remote != self.registry.local_value(name):
                self.registry.set_local_value(name, remote)
                self.registry.set_state(name, FieldState.SYNCED)
                synced.append(name)

        if synced:
            self.logger.debug(f"Synced {len(synced)} fields", extra={"fields": synced})
