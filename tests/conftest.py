"""
Shared test configuration and fixtures.

Remote getters and setters are AsyncMock instances so tests can assert on
call counts, which stand in for the number of paid remote operations.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from remote_dataset import FieldSpec, OperationHandle, RemotelyBackedDataset


class GatedGetter:
    """Remote getter that blocks until released, to hold a sync in flight."""

    def __init__(self, value):
        self.value = value
        self.calls = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self):
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return self.value


@pytest.fixture
def receipt_hook():
    """Caller-supplied receipt hook already present on a setter's handle."""
    return MagicMock(return_value="original-result")


@pytest.fixture
def remote(receipt_hook):
    """Remote getters and setters for the standard four-field dataset."""
    common_setter = AsyncMock(return_value={"commonsetter": "object"})
    return {
        "getter": AsyncMock(return_value="field name"),
        "setter": AsyncMock(return_value={"setter1": "result"}),
        "getter2": AsyncMock(return_value="field name"),
        "setter2": AsyncMock(
            return_value=OperationHandle(payload={"setter2": "result"}, on_receipt=receipt_hook)
        ),
        "common_setter": common_setter,
    }


@pytest.fixture
def dataset(remote):
    """Dataset with two remote fields and two fields sharing one setter."""
    instance = RemotelyBackedDataset()
    instance.bind(
        {
            "random_field": FieldSpec(
                remote_getter=remote["getter"], remote_setter=remote["setter"]
            ),
            "random_field2": FieldSpec(
                remote_getter=remote["getter2"], remote_setter=remote["setter2"]
            ),
            "common_field": FieldSpec(remote_setter=remote["common_setter"]),
            "common_field2": FieldSpec(remote_setter=remote["common_setter"]),
        }
    )
    return instance


@pytest.fixture
def gated_getter():
    """Factory for remote getters that hold a sync in flight until released."""
    return GatedGetter
