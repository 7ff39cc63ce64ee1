"""Scoped psycopg transactions over a pooled connection source."""

from __future__ import annotations

from contextlib import contextmanager
import enum
import logging
import re
from typing import Any, ContextManager, Iterator, Mapping, Optional, Protocol, Sequence, Union

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

logger = logging.getLogger(__name__)

_NAMED_PARAM_RE = re.compile(r"(?<!:):([a-zA-Z_][a-zA-Z0-9_]*)")

Statement = Union[str, sql.Composable]


def _convert_named_params(statement: Statement) -> Statement:
    """Convert :named params to psycopg %(named)s format."""
    if isinstance(statement, str):
        return _NAMED_PARAM_RE.sub(r"%(\1)s", statement)
    return statement


class TransactionMode(enum.Enum):
    """Isolation and access mode of one logical store operation."""

    READ_ONLY = "READ_ONLY"
    READ_WRITE = "READ_WRITE"
    SERIALIZABLE = "SERIALIZABLE"


class IndexerSession(Protocol):
    """Minimal read/write protocol the indexer components run SQL through."""

    def fetch_one(self, statement: Statement, params: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
        """Fetch one row."""

    def fetch_all(self, statement: Statement, params: Mapping[str, Any]) -> Sequence[Mapping[str, Any]]:
        """Fetch all rows."""

    def execute(self, statement: Statement, params: Optional[Mapping[str, Any]] = None) -> int:
        """Execute a mutation and return the affected row count."""


class TransactionSource(Protocol):
    """Hands out one session per logical operation, inside one transaction."""

    def transaction(self, mode: TransactionMode) -> ContextManager[IndexerSession]:
        """Open a transaction, committing on success and rolling back on error."""


class ConnectionPool(Protocol):
    """The ``psycopg_pool.ConnectionPool`` acquisition contract."""

    def connection(self) -> ContextManager[psycopg.Connection[Any]]:
        """Borrow a connection, returning it to the pool on exit."""


class PsycopgSession:
    """Session adapter executing :named-parameter SQL on one psycopg connection."""

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        self.conn = conn

    def fetch_one(self, statement: Statement, params: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
        rows = self.fetch_all(statement, params)
        return rows[0] if rows else None

    def fetch_all(self, statement: Statement, params: Mapping[str, Any]) -> Sequence[Mapping[str, Any]]:
        with self.conn.cursor(row_factory=dict_row) as cur:
            cur.execute(_convert_named_params(statement), dict(params))
            return [dict(row) for row in cur.fetchall()]

    def execute(self, statement: Statement, params: Optional[Mapping[str, Any]] = None) -> int:
        with self.conn.cursor() as cur:
            cur.execute(_convert_named_params(statement), dict(params) if params else None)
            return max(cur.rowcount, 0)


_ISOLATION: dict[TransactionMode, Optional[psycopg.IsolationLevel]] = {
    TransactionMode.READ_ONLY: None,
    TransactionMode.READ_WRITE: None,
    TransactionMode.SERIALIZABLE: psycopg.IsolationLevel.SERIALIZABLE,
}


class PooledTransactions:
    """Transaction source that borrows one pooled connection per operation."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    @contextmanager
    def transaction(self, mode: TransactionMode = TransactionMode.READ_WRITE) -> Iterator[PsycopgSession]:
        with self._pool.connection() as conn:
            conn.isolation_level = _ISOLATION[mode]
            conn.read_only = mode is TransactionMode.READ_ONLY
            try:
                with conn.transaction():
                    yield PsycopgSession(conn)
            finally:
                # Leave the connection in its default mode for the next borrower.
                if not conn.closed and conn.info.transaction_status == psycopg.pq.TransactionStatus.IDLE:
                    conn.isolation_level = None
                    conn.read_only = None
