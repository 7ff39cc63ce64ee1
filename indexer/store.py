"""PostgreSQL-backed indexer store composing writer, partitions and queries."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from indexer.checkpoint_writer import CheckpointWriter
from indexer.error_sink import ErrorSink
from indexer.partitions import PartitionManager
from indexer.pg import ConnectionPool, PooledTransactions, TransactionSource
from indexer.query_engine import QueryEngine
from indexer.rows import CheckpointDelta, CheckpointRow, DigestPage, TransactionRow

logger = logging.getLogger(__name__)


class PgIndexerStore:
    """One entry point over a shared connection pool.

    Partitioned tables are discovered when the store is built.
    """

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        *,
        source: Optional[TransactionSource] = None,
    ) -> None:
        if source is None:
            if pool is None:
                raise ValueError("PgIndexerStore needs a connection pool or a transaction source.")
            source = PooledTransactions(pool)
        self.partition_manager = PartitionManager(source)
        self.writer = CheckpointWriter(source)
        self.queries = QueryEngine(source)
        self.error_sink = ErrorSink(source)

    def persist_checkpoint(self, delta: CheckpointDelta) -> int:
        return self.writer.persist(delta)

    def advance_epoch(self, next_epoch_id: int) -> int:
        return self.partition_manager.advance_epoch(next_epoch_id)

    def log_errors(self, errors: Sequence[BaseException]) -> None:
        self.error_sink.record(errors)

    def latest_checkpoint_sequence(self) -> int:
        return self.queries.latest_checkpoint_sequence()

    def checkpoint(self, checkpoint_id: Union[int, str]) -> CheckpointRow:
        return self.queries.checkpoint(checkpoint_id)

    def transaction_count(self) -> int:
        return self.queries.transaction_count()

    def transaction_by_digest(self, digest: str) -> TransactionRow:
        return self.queries.transaction_by_digest(digest)

    def transaction_row_id(self, digest: Optional[str], descending: bool) -> Optional[int]:
        return self.queries.transaction_row_id(digest, descending)

    def move_call_row_id(self, digest: Optional[str], descending: bool) -> Optional[int]:
        return self.queries.move_call_row_id(digest, descending)

    def recipient_row_id(self, digest: Optional[str], descending: bool) -> Optional[int]:
        return self.queries.recipient_row_id(digest, descending)

    def digests_page(self, start_cursor: Optional[int], limit: int, descending: bool) -> DigestPage:
        return self.queries.digests_page(start_cursor, limit, descending)

    def digests_by_move_call(
        self,
        package: str,
        module: Optional[str],
        function: Optional[str],
        start_cursor: Optional[int],
        limit: int,
        descending: bool,
    ) -> DigestPage:
        return self.queries.digests_by_move_call(package, module, function, start_cursor, limit, descending)

    def digests_by_mutated_object(
        self, object_id: str, start_cursor: Optional[int], limit: int, descending: bool
    ) -> DigestPage:
        return self.queries.digests_by_mutated_object(object_id, start_cursor, limit, descending)

    def digests_by_sender(self, sender: str, start_cursor: Optional[int], limit: int, descending: bool) -> DigestPage:
        return self.queries.digests_by_sender(sender, start_cursor, limit, descending)

    def digests_by_recipient(
        self, recipient: str, start_cursor: Optional[int], limit: int, descending: bool
    ) -> DigestPage:
        return self.queries.digests_by_recipient(recipient, start_cursor, limit, descending)

    def raw_transactions(self, after_row_id: int, limit: int) -> list[TransactionRow]:
        return self.queries.raw_transactions(after_row_id, limit)
