"""Checkpoint indexer store: atomic ingestion, epoch partitions and paginated queries."""

from indexer.checkpoint_writer import CheckpointWriter
from indexer.error_sink import ErrorSink
from indexer.errors import IndexerError, NotFoundError, ReadError, WriteError
from indexer.partitions import PartitionManager, PartitionRegistry
from indexer.pg import PooledTransactions, PsycopgSession, TransactionMode
from indexer.query_engine import NO_CHECKPOINT_SEQUENCE, QueryEngine
from indexer.rows import (
    AddressRow,
    CheckpointDelta,
    CheckpointRow,
    DeletedObjectRow,
    DigestPage,
    EventRow,
    MoveCallRow,
    MutatedObjectRow,
    PackageRow,
    RecipientRow,
    TransactionObjectChanges,
    TransactionRow,
)
from indexer.store import PgIndexerStore

__all__ = [
    "AddressRow",
    "CheckpointDelta",
    "CheckpointRow",
    "CheckpointWriter",
    "DeletedObjectRow",
    "DigestPage",
    "ErrorSink",
    "EventRow",
    "IndexerError",
    "MoveCallRow",
    "MutatedObjectRow",
    "NO_CHECKPOINT_SEQUENCE",
    "NotFoundError",
    "PackageRow",
    "PartitionManager",
    "PartitionRegistry",
    "PgIndexerStore",
    "PooledTransactions",
    "PsycopgSession",
    "QueryEngine",
    "ReadError",
    "RecipientRow",
    "TransactionMode",
    "TransactionObjectChanges",
    "TransactionRow",
    "WriteError",
]
