"""Unit tests for partition discovery and epoch advancement."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import psycopg
import pytest

from indexer.errors import ReadError, WriteError
from indexer.partitions import (
    GET_PARTITION_SQL,
    PartitionManager,
    PartitionRegistry,
    create_partition_statement,
    partition_name,
)
from indexer.pg import TransactionMode
from tests.utils.fake_db import FakeTransactions


def _catalog(last_epochs: Mapping[str, Any]) -> FakeTransactions:
    def responder(statement: Any, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        if statement == GET_PARTITION_SQL:
            return [{"table_name": table, "last_epoch": epoch} for table, epoch in last_epochs.items()]
        return []

    return FakeTransactions(responder=responder)


def test_registry_load_reads_catalog_in_read_only_transaction() -> None:
    source = _catalog({"recipients": 0, "events": 0, "move_calls": 0})

    registry = PartitionRegistry.load(source)

    assert registry.tables == ("events", "move_calls", "recipients")
    assert registry.last_epoch("events") == 0
    assert source.modes == [TransactionMode.READ_ONLY]


def test_registry_load_wraps_store_failure() -> None:
    source = FakeTransactions(fail_when=lambda statement: psycopg.OperationalError("catalog unavailable"))
    with pytest.raises(ReadError) as excinfo:
        PartitionRegistry.load(source)
    assert excinfo.value.operation == "table partitions"


def test_partition_statement_targets_one_epoch_range() -> None:
    assert partition_name("events", 3) == "events_partition_3"
    assert create_partition_statement("events", 3) == create_partition_statement("events", 3)
    assert create_partition_statement("events", 3) != create_partition_statement("events", 4)


def test_manager_logs_discovered_tables(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="indexer.partitions")
    PartitionManager(_catalog({"events": 0, "recipients": 0}))
    assert "Found 2 tables with partitions: ['events', 'recipients']" in caplog.text


def test_advance_epoch_creates_one_partition_per_table_atomically() -> None:
    source = _catalog({"events": 0, "move_calls": 0, "recipients": 0})
    manager = PartitionManager(source)

    created = manager.advance_epoch(1)

    assert created == 3
    assert source.modes == [TransactionMode.READ_ONLY, TransactionMode.SERIALIZABLE]
    assert [statement for statement, _ in source.executed()] == [
        create_partition_statement("events", 1),
        create_partition_statement("move_calls", 1),
        create_partition_statement("recipients", 1),
    ]
    assert manager.registry.snapshot() == {"events": 1, "move_calls": 1, "recipients": 1}


def test_repeated_advance_is_rejected_without_touching_the_store() -> None:
    source = _catalog({"events": 0, "move_calls": 0, "recipients": 0})
    manager = PartitionManager(source)
    manager.advance_epoch(1)
    executed_before = len(source.executed())

    with pytest.raises(WriteError) as excinfo:
        manager.advance_epoch(1)

    assert excinfo.value.epoch == 1
    assert len(source.executed()) == executed_before
    with pytest.raises(WriteError):
        manager.advance_epoch(0)


def test_stale_registry_falls_back_to_store_rejection() -> None:
    def duplicate(statement: Any) -> Any:
        if statement == create_partition_statement("move_calls", 1):
            return psycopg.errors.DuplicateTable('relation "move_calls_partition_1" already exists')
        return None

    source = FakeTransactions(fail_when=duplicate)
    manager = PartitionManager(source, PartitionRegistry({"events": 0, "move_calls": 0, "recipients": 0}))

    with pytest.raises(WriteError) as excinfo:
        manager.advance_epoch(1)

    assert isinstance(excinfo.value.__cause__, psycopg.errors.DuplicateTable)
    assert source.rolled_back == 1
    # Registry is only advanced after a committed transaction.
    assert manager.registry.snapshot() == {"events": 0, "move_calls": 0, "recipients": 0}


def test_refresh_rereads_catalog() -> None:
    epochs: dict[str, Any] = {"events": 0}
    source = _catalog(epochs)
    manager = PartitionManager(source)
    epochs["recipients"] = 4

    registry = manager.refresh()

    assert registry.snapshot() == {"events": 0, "recipients": 4}
    assert manager.tables == ("events", "recipients")


def test_negative_epoch_is_rejected() -> None:
    manager = PartitionManager(_catalog({"events": 0}))
    with pytest.raises(ValueError):
        manager.advance_epoch(-1)


def test_table_without_partitions_accepts_any_epoch() -> None:
    source = _catalog({"events": None})
    manager = PartitionManager(source)
    assert manager.advance_epoch(0) == 1
    assert manager.registry.last_epoch("events") == 0
