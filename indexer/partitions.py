"""Epoch partition discovery and creation for range-partitioned tables."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

import psycopg
from psycopg import sql

from indexer.errors import ReadError, WriteError
from indexer.pg import TransactionMode, TransactionSource

logger = logging.getLogger(__name__)

GET_PARTITION_SQL = r"""
SELECT parent.relname AS table_name,
       MAX(CAST(SUBSTRING(child.relname FROM '_partition_(\d+)$') AS BIGINT)) AS last_epoch
FROM pg_inherits
         JOIN pg_class parent ON pg_inherits.inhparent = parent.oid
         JOIN pg_class child ON pg_inherits.inhrelid = child.oid
         JOIN pg_namespace nmsp_parent ON nmsp_parent.oid = parent.relnamespace
WHERE parent.relkind = 'p'
  AND nmsp_parent.nspname = current_schema()
GROUP BY parent.relname
ORDER BY parent.relname
"""


def partition_name(table: str, epoch: int) -> str:
    return f"{table}_partition_{epoch}"


def create_partition_statement(table: str, epoch: int) -> sql.Composed:
    """DDL creating the ``[epoch, epoch + 1)`` partition of ``table``."""
    return sql.SQL(
        "CREATE TABLE {partition} PARTITION OF {table} FOR VALUES FROM ({start}) TO ({end})"
    ).format(
        partition=sql.Identifier(partition_name(table, epoch)),
        table=sql.Identifier(table),
        start=sql.Literal(epoch),
        end=sql.Literal(epoch + 1),
    )


class PartitionRegistry:
    """Latest partition epoch per partitioned table, read from the catalog.

    Loaded once; only ``PartitionManager`` updates it after a successful
    epoch advance, and ``load`` is the only way to re-read the catalog.
    """

    def __init__(self, last_epochs: Mapping[str, Optional[int]]) -> None:
        self._last_epochs: dict[str, Optional[int]] = dict(sorted(last_epochs.items()))

    @classmethod
    def load(cls, source: TransactionSource) -> "PartitionRegistry":
        try:
            with source.transaction(TransactionMode.READ_ONLY) as db:
                rows = db.fetch_all(GET_PARTITION_SQL, {})
        except psycopg.Error as exc:
            raise ReadError("table partitions", {}, exc) from exc
        return cls(
            {
                str(row["table_name"]): int(row["last_epoch"]) if row["last_epoch"] is not None else None
                for row in rows
            }
        )

    @property
    def tables(self) -> tuple[str, ...]:
        return tuple(self._last_epochs)

    def last_epoch(self, table: str) -> Optional[int]:
        return self._last_epochs[table]

    def snapshot(self) -> dict[str, Optional[int]]:
        return dict(self._last_epochs)

    def record_epoch(self, epoch: int) -> None:
        for table in self._last_epochs:
            self._last_epochs[table] = epoch


class PartitionManager:
    """Creates one partition per managed table at each epoch boundary."""

    def __init__(self, source: TransactionSource, registry: Optional[PartitionRegistry] = None) -> None:
        self._source = source
        self._registry = registry if registry is not None else PartitionRegistry.load(source)
        logger.info(
            "Found %d tables with partitions: %s",
            len(self._registry.tables),
            list(self._registry.tables),
        )

    @property
    def tables(self) -> tuple[str, ...]:
        return self._registry.tables

    @property
    def registry(self) -> PartitionRegistry:
        return self._registry

    def refresh(self) -> PartitionRegistry:
        """Re-discover partitioned tables from the catalog."""
        self._registry = PartitionRegistry.load(self._source)
        logger.info("Re-discovered %d partitioned tables.", len(self._registry.tables))
        return self._registry

    def advance_epoch(self, next_epoch_id: int) -> int:
        """Create the partition for ``next_epoch_id`` on every managed table.

        Must run exactly once per epoch, before any checkpoint of that epoch
        is persisted. A repeated call fails with ``WriteError``.
        """
        if next_epoch_id < 0:
            raise ValueError(f"Epoch id must be non-negative, got {next_epoch_id}.")

        already = [
            table
            for table, last_epoch in self._registry.snapshot().items()
            if last_epoch is not None and last_epoch >= next_epoch_id
        ]
        if already:
            raise WriteError(
                f"Partitions for epoch {next_epoch_id} already exist or are behind the latest "
                f"partition for tables {already}.",
                epoch=next_epoch_id,
            )

        try:
            with self._source.transaction(TransactionMode.SERIALIZABLE) as db:
                for table in self._registry.tables:
                    db.execute(create_partition_statement(table, next_epoch_id))
        except psycopg.Error as exc:
            raise WriteError(
                f"Failed creating partitions for epoch {next_epoch_id}: {exc}",
                epoch=next_epoch_id,
            ) from exc

        self._registry.record_epoch(next_epoch_id)
        logger.info(
            "Advanced %d partitioned tables to epoch %d.",
            len(self._registry.tables),
            next_epoch_id,
        )
        return len(self._registry.tables)
