"""Read-only lookups and cursor pagination over indexed transactions."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar, Union

import psycopg

from indexer.errors import NotFoundError, ReadError
from indexer.pg import IndexerSession, TransactionMode, TransactionSource
from indexer.rows import (
    CheckpointRow,
    DigestPage,
    TransactionRow,
    checkpoint_from_row,
    transaction_from_row,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Returned by latest_checkpoint_sequence() while no checkpoint exists.
NO_CHECKPOINT_SEQUENCE = -1

_ROW_ID_TABLES: dict[str, str] = {
    "transaction": "transactions",
    "move call": "move_calls",
    "recipient": "recipients",
}


def _order(descending: bool) -> str:
    return "DESC" if descending else "ASC"


def _cursor_predicate(column: str, start_cursor: Optional[int], descending: bool) -> str:
    """Inclusive bound: the cursor row itself is part of the result."""
    if start_cursor is None:
        return ""
    return f"AND {column} <= :start_cursor" if descending else f"AND {column} >= :start_cursor"


def _check_limit(limit: int) -> None:
    if limit < 1:
        raise ValueError(f"Page limit must be at least 1, got {limit}.")


def _to_page(rows: Sequence[Mapping[str, Any]], limit: int) -> DigestPage:
    kept = rows[:limit]
    has_more = len(rows) > limit
    return DigestPage(
        digests=tuple(str(row["digest"]) for row in kept),
        row_ids=tuple(int(row["row_id"]) for row in kept),
        has_more=has_more,
        next_cursor=int(rows[limit]["row_id"]) if has_more else None,
    )


class QueryEngine:
    """Answers the store's read queries, each in its own read-only transaction.

    Every digest listing fetches ``limit + 1`` rows so the returned
    ``DigestPage`` can say whether more rows follow.
    """

    def __init__(self, source: TransactionSource) -> None:
        self._source = source

    def _read(self, operation: str, params: Mapping[str, Any], query: Callable[[IndexerSession], T]) -> T:
        try:
            with self._source.transaction(TransactionMode.READ_ONLY) as db:
                return query(db)
        except psycopg.Error as exc:
            raise ReadError(operation, dict(params), exc) from exc

    def latest_checkpoint_sequence(self) -> int:
        row = self._read(
            "latest checkpoint sequence number",
            {},
            lambda db: db.fetch_one("SELECT MAX(sequence_number) AS latest FROM checkpoints", {}),
        )
        if row is None or row["latest"] is None:
            return NO_CHECKPOINT_SEQUENCE
        return int(row["latest"])

    def checkpoint(self, checkpoint_id: Union[int, str]) -> CheckpointRow:
        """Look up a checkpoint by sequence number (int) or digest (str)."""
        if isinstance(checkpoint_id, bool) or not isinstance(checkpoint_id, (int, str)):
            raise TypeError(f"Checkpoint id must be a sequence number or digest, got {checkpoint_id!r}.")
        if isinstance(checkpoint_id, int):
            statement = "SELECT * FROM checkpoints WHERE sequence_number = :checkpoint_id LIMIT 1"
        else:
            statement = "SELECT * FROM checkpoints WHERE checkpoint_digest = :checkpoint_id LIMIT 1"
        params = {"checkpoint_id": checkpoint_id}
        row = self._read("checkpoint", params, lambda db: db.fetch_one(statement, params))
        if row is None:
            raise NotFoundError(f"Checkpoint {checkpoint_id!r} not found.")
        return checkpoint_from_row(row)

    def transaction_count(self) -> int:
        row = self._read(
            "total transaction number",
            {},
            lambda db: db.fetch_one("SELECT COUNT(*) AS total FROM transactions", {}),
        )
        return int(row["total"]) if row is not None else 0

    def transaction_by_digest(self, digest: str) -> TransactionRow:
        params = {"digest": digest}
        row = self._read(
            "transaction",
            params,
            lambda db: db.fetch_one(
                "SELECT * FROM transactions WHERE transaction_digest = :digest LIMIT 1",
                params,
            ),
        )
        if row is None:
            raise NotFoundError(f"Transaction {digest} not found.")
        return transaction_from_row(row)

    def transaction_row_id(self, digest: Optional[str], descending: bool) -> Optional[int]:
        return self._row_id_by_digest("transaction", digest, descending)

    def move_call_row_id(self, digest: Optional[str], descending: bool) -> Optional[int]:
        return self._row_id_by_digest("move call", digest, descending)

    def recipient_row_id(self, digest: Optional[str], descending: bool) -> Optional[int]:
        return self._row_id_by_digest("recipient", digest, descending)

    def _row_id_by_digest(self, kind: str, digest: Optional[str], descending: bool) -> Optional[int]:
        """Translate a digest into a pagination cursor for the given table."""
        if digest is None:
            return None
        statement = (
            f"SELECT id AS row_id FROM {_ROW_ID_TABLES[kind]} "
            f"WHERE transaction_digest = :digest ORDER BY id {_order(descending)} LIMIT 1"
        )
        params = {"digest": digest}
        row = self._read(
            f"{kind} sequence",
            {"digest": digest, "descending": descending},
            lambda db: db.fetch_one(statement, params),
        )
        if row is None:
            raise NotFoundError(f"No {kind} row for digest {digest}.")
        return int(row["row_id"])

    def digests_page(self, start_cursor: Optional[int], limit: int, descending: bool) -> DigestPage:
        """All transaction digests in row-id order."""
        statement = f"""
            SELECT id AS row_id, transaction_digest AS digest
            FROM transactions
            WHERE TRUE {_cursor_predicate('id', start_cursor, descending)}
            ORDER BY id {_order(descending)}
            LIMIT :fetch_limit
        """
        return self._page("all transaction digests", statement, {}, start_cursor, limit, descending)

    def digests_by_move_call(
        self,
        package: str,
        module: Optional[str],
        function: Optional[str],
        start_cursor: Optional[int],
        limit: int,
        descending: bool,
    ) -> DigestPage:
        """Digests of transactions calling into ``package`` (optionally module/function).

        A transaction making several matching calls appears once, positioned
        at its highest matching move-call row id.
        """
        filters = ["move_package = :package"]
        params: dict[str, Any] = {"package": package}
        if module is not None:
            filters.append("move_module = :module")
            params["module"] = module
        if function is not None:
            filters.append("move_function = :function")
            params["function"] = function
        statement = f"""
            SELECT transaction_digest AS digest, MAX(id) AS row_id
            FROM move_calls
            WHERE {' AND '.join(filters)} {_cursor_predicate('id', start_cursor, descending)}
            GROUP BY transaction_digest
            ORDER BY row_id {_order(descending)}
            LIMIT :fetch_limit
        """
        return self._page("transaction digests by move call", statement, params, start_cursor, limit, descending)

    def digests_by_mutated_object(
        self,
        object_id: str,
        start_cursor: Optional[int],
        limit: int,
        descending: bool,
    ) -> DigestPage:
        statement = f"""
            SELECT id AS row_id, transaction_digest AS digest
            FROM transactions
            WHERE mutated @> ARRAY[CAST(:object_id AS TEXT)] {_cursor_predicate('id', start_cursor, descending)}
            ORDER BY id {_order(descending)}
            LIMIT :fetch_limit
        """
        return self._page(
            "transaction digests by mutated object",
            statement,
            {"object_id": object_id},
            start_cursor,
            limit,
            descending,
        )

    def digests_by_sender(
        self,
        sender: str,
        start_cursor: Optional[int],
        limit: int,
        descending: bool,
    ) -> DigestPage:
        statement = f"""
            SELECT id AS row_id, transaction_digest AS digest
            FROM transactions
            WHERE sender = :sender {_cursor_predicate('id', start_cursor, descending)}
            ORDER BY id {_order(descending)}
            LIMIT :fetch_limit
        """
        return self._page(
            "transaction digests by sender address",
            statement,
            {"sender": sender},
            start_cursor,
            limit,
            descending,
        )

    def digests_by_recipient(
        self,
        recipient: str,
        start_cursor: Optional[int],
        limit: int,
        descending: bool,
    ) -> DigestPage:
        """Digests of transactions paying ``recipient``, one per transaction."""
        statement = f"""
            SELECT t.digest, t.row_id
            FROM (
                SELECT transaction_digest AS digest, MAX(id) AS row_id
                FROM recipients
                WHERE recipient = :recipient {_cursor_predicate('id', start_cursor, descending)}
                GROUP BY transaction_digest
            ) AS t
            ORDER BY t.row_id {_order(descending)}
            LIMIT :fetch_limit
        """
        return self._page(
            "transaction digests by recipient address",
            statement,
            {"recipient": recipient},
            start_cursor,
            limit,
            descending,
        )

    def _page(
        self,
        operation: str,
        statement: str,
        filters: Mapping[str, Any],
        start_cursor: Optional[int],
        limit: int,
        descending: bool,
    ) -> DigestPage:
        _check_limit(limit)
        params = dict(filters)
        params["fetch_limit"] = limit + 1
        if start_cursor is not None:
            params["start_cursor"] = start_cursor
        context = {**filters, "start_cursor": start_cursor, "limit": limit, "descending": descending}
        rows = self._read(operation, context, lambda db: db.fetch_all(statement, params))
        return _to_page(rows, limit)

    def raw_transactions(self, after_row_id: int, limit: int) -> list[TransactionRow]:
        """Transactions with row id strictly greater than ``after_row_id``, ascending."""
        _check_limit(limit)
        params = {"after_row_id": after_row_id, "limit": limit}
        rows = self._read(
            "transactions",
            params,
            lambda db: db.fetch_all(
                "SELECT * FROM transactions WHERE id > :after_row_id ORDER BY id ASC LIMIT :limit",
                params,
            ),
        )
        return [transaction_from_row(row) for row in rows]
