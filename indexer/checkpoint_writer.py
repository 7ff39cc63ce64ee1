"""Atomic persistence of one checkpoint's indexed delta."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Sequence

from sqlalchemy import Sequence as SqlSequence
from sqlalchemy import Table

from backend.db.models import (
    Address,
    Checkpoint,
    Event,
    MoveCall,
    ObjectState,
    Package,
    Recipient,
    Transaction,
)
from indexer.errors import WriteError
from indexer.pg import IndexerSession, TransactionMode, TransactionSource
from indexer.rows import CheckpointDelta, DeletedObjectRow, MutatedObjectRow

logger = logging.getLogger(__name__)

# PostgreSQL caps one statement at 65535 bind parameters.
MAX_BIND_PARAMS = 65535

DELETED_OBJECT_COLUMNS: tuple[str, ...] = (
    "object_id",
    "epoch",
    "checkpoint",
    "version",
    "previous_transaction",
    "object_status",
)


def insert_columns(table: Table) -> tuple[str, ...]:
    """Columns the writer supplies; store-generated row ids are left out."""
    return tuple(
        column.name
        for column in table.columns
        if column.identity is None and not isinstance(column.default, SqlSequence)
    )


def _adapt(value: Any) -> Any:
    # psycopg dumps lists, not tuples, as PostgreSQL arrays.
    if isinstance(value, tuple):
        return list(value)
    return value


def build_bulk_insert(
    table_name: str,
    columns: Sequence[str],
    rows: Sequence[Any],
    on_conflict: str = "",
) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield multi-row INSERT statements with :named parameters for ``rows``."""
    per_statement = max(1, MAX_BIND_PARAMS // len(columns))
    column_list = ", ".join(columns)
    for start in range(0, len(rows), per_statement):
        chunk = rows[start : start + per_statement]
        params: dict[str, Any] = {}
        values: list[str] = []
        for index, row in enumerate(chunk):
            placeholders: list[str] = []
            for column in columns:
                key = f"{column}_{index}"
                params[key] = _adapt(getattr(row, column))
                placeholders.append(f":{key}")
            values.append(f"({', '.join(placeholders)})")
        statement = f"INSERT INTO {table_name} ({column_list}) VALUES {', '.join(values)}"
        if on_conflict:
            statement = f"{statement} {on_conflict}"
        yield statement, params


def _overwrite_clause(conflict_column: str, columns: Sequence[str]) -> str:
    assignments = ", ".join(
        f"{column} = EXCLUDED.{column}" for column in columns if column != conflict_column
    )
    return f"ON CONFLICT ({conflict_column}) DO UPDATE SET {assignments}"


MUTATED_OBJECT_COLUMNS = insert_columns(ObjectState.__table__)
MUTATED_OBJECT_CONFLICT = _overwrite_clause("object_id", MUTATED_OBJECT_COLUMNS)
DELETED_OBJECT_CONFLICT = _overwrite_clause("object_id", DELETED_OBJECT_COLUMNS)


class CheckpointWriter:
    """Writes a ``CheckpointDelta`` in one serializable transaction.

    Objects are upserted one originating transaction at a time so a single
    statement never touches the same object id twice. Addresses and packages
    ignore conflicts; every other table is append-only.
    """

    def __init__(self, source: TransactionSource) -> None:
        self._source = source

    def persist(self, delta: CheckpointDelta) -> int:
        """Persist ``delta`` atomically and return the number of rows written."""
        try:
            with self._source.transaction(TransactionMode.SERIALIZABLE) as db:
                written = self._write_delta(db, delta)
        except Exception as exc:
            raise WriteError(
                f"Failed writing checkpoint {delta.checkpoint.sequence_number} with transactions "
                f"{list(delta.transaction_digests)}: {exc}",
                transaction_digests=delta.transaction_digests,
                epoch=delta.checkpoint.epoch,
            ) from exc

        logger.debug(
            "Persisted checkpoint %d (%d transactions, %d rows).",
            delta.checkpoint.sequence_number,
            len(delta.transactions),
            written,
        )
        return written

    def _write_delta(self, db: IndexerSession, delta: CheckpointDelta) -> int:
        written = self._insert(db, Checkpoint.__table__, (delta.checkpoint,))
        written += self._insert(db, Transaction.__table__, delta.transactions)
        written += self._insert(db, Event.__table__, delta.events)

        for changes in delta.object_changes:
            written += self._upsert_mutated(db, changes.mutated_objects)
            written += self._upsert_deleted(db, changes.deleted_objects)

        # Address metadata is fixed at first appearance.
        written += self._insert(
            db,
            Address.__table__,
            delta.addresses,
            on_conflict="ON CONFLICT (account_address) DO NOTHING",
        )
        # Upgrades add new versions; an existing (package_id, version) never changes.
        written += self._insert(
            db,
            Package.__table__,
            delta.packages,
            on_conflict="ON CONFLICT (package_id, version) DO NOTHING",
        )
        written += self._insert(db, MoveCall.__table__, delta.move_calls)
        written += self._insert(db, Recipient.__table__, delta.recipients)
        return written

    def _insert(
        self,
        db: IndexerSession,
        table: Table,
        rows: Sequence[Any],
        on_conflict: str = "",
    ) -> int:
        if not rows:
            return 0
        return self._execute_batches(
            db,
            build_bulk_insert(table.name, insert_columns(table), rows, on_conflict),
        )

    def _upsert_mutated(self, db: IndexerSession, rows: Sequence[MutatedObjectRow]) -> int:
        if not rows:
            return 0
        return self._execute_batches(
            db,
            build_bulk_insert(
                ObjectState.__tablename__,
                MUTATED_OBJECT_COLUMNS,
                rows,
                MUTATED_OBJECT_CONFLICT,
            ),
        )

    def _upsert_deleted(self, db: IndexerSession, rows: Sequence[DeletedObjectRow]) -> int:
        if not rows:
            return 0
        return self._execute_batches(
            db,
            build_bulk_insert(
                ObjectState.__tablename__,
                DELETED_OBJECT_COLUMNS,
                rows,
                DELETED_OBJECT_CONFLICT,
            ),
        )

    @staticmethod
    def _execute_batches(db: IndexerSession, batches: Iterator[tuple[str, dict[str, Any]]]) -> int:
        return sum(db.execute(statement, params) for statement, params in batches)
