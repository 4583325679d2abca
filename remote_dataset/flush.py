"""
Write-deduplicating flush for remotely backed datasets.

Dirty fields are committed through their remote setters. A setter shared
by several fields commits all of them in one call, so it is invoked only
once per flush. Fields stay dirty until the remote store acknowledges the
operation through the handle's receipt hook.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .config import DatasetConfig
from .exceptions import RemoteWriteError
from .lifecycle import LifecycleFlags
from .registry import FieldRegistry
from .sync import ReadThroughSync
from .types import FieldState, OperationHandle, RemoteSetter, resolve


class FlushEngine:
    """Pushes dirty fields to the remote store."""

    def __init__(
        self,
        registry: FieldRegistry,
        flags: LifecycleFlags,
        reader: ReadThroughSync,
        config: DatasetConfig,
        logger: logging.LoggerAdapter,
    ):
        self.registry = registry
        self.flags = flags
        self.reader = reader
        self.config = config
        self.logger = logger

    async def flush(self, options: Any = None) -> list[OperationHandle]:
        """Call every distinct remote setter that has dirty fields.

        Args:
            options: Opaque payload passed to every setter (e.g. sender and
                authorization data). Each call gets its own copy.

        Returns:
            One handle per setter call, in canonical field order. Each
            handle's ``on_receipt`` hook marks the setter's fields synced.

        Raises:
            ObsoleteAccessError: If the dataset is obsolete
            UndeployedAccessError: If the dataset was never deployed
            RemoteReadError: If the preceding sync failed
            RemoteWriteError: If any setter failed; handles of the setters
                that succeeded are on the error
        """
        self.flags.ensure_usable("flush")
        await self.reader.sync()

        groups = self.registry.dirty_setter_groups()
        if not groups:
            return []

        self.logger.debug(
            f"Flushing {len(groups)} remote setters",
            extra={"fields": [name for _, names in groups for name in names]},
        )
        semaphore = (
            asyncio.Semaphore(self.config.max_concurrency) if self.config.max_concurrency else None
        )
        results = await asyncio.gather(
            *(self._commit(setter, names, options, semaphore) for setter, names in groups),
            return_exceptions=True,
        )

        handles: list[OperationHandle] = []
        failures: list[Exception] = []
        failed_fields: list[str] = []
        for (_, names), result in zip(groups, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures.append(result)
                failed_fields.extend(names)
            else:
                handles.append(result)

        if failures:
            self.logger.warning(
                f"{len(failures)} of {len(groups)} remote setters failed",
                extra={"fields": failed_fields},
            )
            raise RemoteWriteError(failures, failed_fields, handles) from failures[0]

        return handles

    async def _commit(
        self,
        setter: RemoteSetter,
        names: list[str],
        options: Any,
        semaphore: asyncio.Semaphore | None,
    ) -> OperationHandle:
        call_options = self.config.options_copy.copy(options)
        if semaphore is None:
            result = await resolve(setter(call_options))
        else:
            async with semaphore:
                result = await resolve(setter(call_options))

        handle = OperationHandle.wrap(result)
        return handle.chain(self._receipt_hook(list(names)))

    def _receipt_hook(self, names: list[str]) -> Callable[[Any], None]:
        def on_receipt(receipt: Any) -> None:
            for name in names:
                if self.registry.state(name) is not FieldState.DIRTY:
                    continue
                # The remote store now holds the committed local value
                self.registry.set_remote_value(name, self.registry.local_value(name))
                self.registry.set_state(name, FieldState.SYNCED)
            self.logger.debug("Remote commit acknowledged", extra={"fields": names})

        return on_receipt
