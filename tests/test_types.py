"""Tests for field declarations and operation handles."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from remote_dataset import FieldSpec, FieldState, OperationHandle


class TestFieldSpec:
    """Tests for FieldSpec coercion."""

    def test_from_spec_is_identity(self):
        spec = FieldSpec(remote_getter=AsyncMock())
        assert FieldSpec.from_value(spec) is spec

    def test_from_mapping(self):
        getter, setter = AsyncMock(), AsyncMock()
        spec = FieldSpec.from_value({"remote_getter": getter, "remote_setter": setter})

        assert spec.remote_getter is getter
        assert spec.remote_setter is setter

    def test_none_is_local_field(self):
        assert FieldSpec.from_value(None) == FieldSpec()

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            FieldSpec.from_value("remote_getter")

    def test_state_values(self):
        assert [s.value for s in FieldState] == ["unsynced", "dirty", "synced"]


class TestOperationHandle:
    """Tests for receipt hook chaining."""

    def test_wrap_plain_result(self):
        handle = OperationHandle.wrap({"tx": "0x1"})

        assert handle.payload == {"tx": "0x1"}
        assert handle.on_receipt is None

    def test_wrap_keeps_existing_handle(self):
        handle = OperationHandle(payload="tx")
        assert OperationHandle.wrap(handle) is handle

    def test_acknowledge_without_hook(self):
        assert OperationHandle(payload="tx").acknowledge() is None

    def test_chain_on_empty_handle(self):
        hook = MagicMock()
        handle = OperationHandle().chain(hook)

        handle.acknowledge("receipt")

        hook.assert_called_once_with("receipt")

    def test_chain_calls_original_then_new(self):
        calls = []
        handle = OperationHandle(on_receipt=lambda r: calls.append(("original", r)) or "kept")
        handle.chain(lambda r: calls.append(("added", r)))

        assert handle.acknowledge("rcpt") == "kept"
        assert calls == [("original", "rcpt"), ("added", "rcpt")]

    def test_chain_propagates_original_failure(self):
        added = MagicMock()
        handle = OperationHandle(on_receipt=MagicMock(side_effect=RuntimeError("boom")))
        handle.chain(added)

        with pytest.raises(RuntimeError, match="boom"):
            handle.acknowledge()

        added.assert_not_called()
