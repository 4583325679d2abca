"""Tests for structured logging helpers."""

import json
import logging

import pytest

from remote_dataset import (
    DatasetLoggerAdapter,
    FieldSpec,
    RemoteReadError,
    RemotelyBackedDataset,
    StructuredJsonFormatter,
    configure_structured_logging,
    get_dataset_logger,
)


class TestStructuredJsonFormatter:
    """Tests for JSON log output."""

    def test_formats_extra_fields(self):
        record = logging.LogRecord(
            name="remote_dataset.dataset",
            level=logging.WARNING,
            pathname=__file__,
            lineno=1,
            msg="Remote sync failed: %s",
            args=("offline",),
            exc_info=None,
        )
        record.dataset = "organization"
        record.fields = ["owner"]
        record.handle = object()

        data = json.loads(StructuredJsonFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["logger"] == "remote_dataset.dataset"
        assert data["message"] == "Remote sync failed: offline"
        assert data["dataset"] == "organization"
        assert data["fields"] == ["owner"]
        assert isinstance(data["handle"], str)


class TestLoggers:
    """Tests for logger helpers."""

    def test_dataset_logger_name(self):
        assert get_dataset_logger("sync").name == "remote_dataset.sync"

    def test_configure_replaces_handlers(self):
        logger = configure_structured_logging(logging.DEBUG, "remote_dataset.test")
        configure_structured_logging(logging.DEBUG, "remote_dataset.test")

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, StructuredJsonFormatter)
        logger.handlers.clear()

    def test_adapter_adds_context(self, caplog):
        adapter = DatasetLoggerAdapter(get_dataset_logger("test"), {"dataset": "hotel"})

        with caplog.at_level(logging.INFO, logger="remote_dataset.test"):
            adapter.info("Bound 2 fields")

        assert caplog.records[0].dataset == "hotel"
        assert caplog.records[0].getMessage() == "[hotel] Bound 2 fields"

    @pytest.mark.asyncio
    async def test_dataset_logs_sync_failure(self, caplog):
        async def failing():
            raise ConnectionError("offline")

        dataset = RemotelyBackedDataset()
        dataset.bind({"owner": FieldSpec(remote_getter=failing)}, owner=self)
        dataset.mark_deployed()

        with caplog.at_level(logging.WARNING, logger="remote_dataset"):
            with pytest.raises(RemoteReadError):
                await dataset.sync()

        record = caplog.records[-1]
        assert "Remote sync failed: offline" in record.getMessage()
        assert record.dataset.startswith("TestLoggers@")
        assert record.fields == ["owner"]
