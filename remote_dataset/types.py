"""
Core types for remotely backed datasets.

Defines field states, field declarations and the operation handle
returned from a flush.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Getters and setters may be coroutine functions or return plain values
RemoteGetter = Callable[[], Any]
RemoteSetter = Callable[[Any], Any]
ReceiptHook = Callable[[Any], Any]


class FieldState(Enum):
    """Synchronization state of a single field."""

    UNSYNCED = "unsynced"  # Never fetched nor written locally
    DIRTY = "dirty"  # Written locally, not yet committed remotely
    SYNCED = "synced"  # Consistent with the remote store


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of how a field talks to the remote store.

    Attributes:
        remote_getter: Callable fetching the current remote value
        remote_setter: Callable committing the field, receives the flush options
            and returns an operation handle (or anything wrapped into one).
            The same setter may be shared by several fields, in which case a
            single call commits all of them.
    """

    remote_getter: RemoteGetter | None = None
    remote_setter: RemoteSetter | None = None

    @classmethod
    def from_value(cls, value: FieldSpec | Mapping[str, Any] | None) -> FieldSpec:
        """Coerce a binding declaration into a FieldSpec."""
        if isinstance(value, FieldSpec):
            return value
        if value is None:
            return cls()
        if isinstance(value, Mapping):
            unknown = set(value) - {"remote_getter", "remote_setter"}
            if unknown:
                raise ValueError(f"Unsupported field options: {sorted(unknown)}")
            return cls(
                remote_getter=value.get("remote_getter"),
                remote_setter=value.get("remote_setter"),
            )
        raise TypeError(f"Cannot build FieldSpec from {type(value).__name__}")


@dataclass
class OperationHandle:
    """Result of a remote setter call.

    The remote store commits asynchronously, so the handle carries an
    optional ``on_receipt`` hook that the collaborator fires once the
    operation is acknowledged.

    Attributes:
        payload: Whatever the remote setter produced (transaction data, ids, ...)
        on_receipt: Hook called with the receipt when the commit is acknowledged
    """

    payload: Any = None
    on_receipt: ReceiptHook | None = field(default=None, repr=False)

    @classmethod
    def wrap(cls, result: Any) -> OperationHandle:
        """Return ``result`` if it is already a handle, else wrap it as payload."""
        if isinstance(result, OperationHandle):
            return result
        return cls(payload=result)

    def chain(self, hook: ReceiptHook) -> OperationHandle:
        """Attach ``hook`` after the existing receipt hook.

        The original hook runs first and its return value is what
        ``acknowledge`` returns.
        """
        original = self.on_receipt
        if original is None:
            self.on_receipt = hook
            return self

        def chained(receipt: Any) -> Any:
            result = original(receipt)
            hook(receipt)
            return result

        self.on_receipt = chained
        return self

    def acknowledge(self, receipt: Any = None) -> Any:
        """Fire the receipt hook, if any."""
        if self.on_receipt is None:
            return None
        return self.on_receipt(receipt)


async def resolve(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it as is."""
    if inspect.isawaitable(value):
        return await value
    return value
