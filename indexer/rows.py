"""Row value types written and read by the indexer store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from backend.db.enums import ObjectStatus


@dataclass(frozen=True)
class CheckpointRow:
    sequence_number: int
    checkpoint_digest: str
    epoch: int
    transactions: tuple[str, ...]
    previous_checkpoint_digest: Optional[str]
    end_of_epoch: bool
    total_gas_cost: int
    total_computation_cost: int
    total_storage_cost: int
    total_storage_rebate: int
    total_transactions: int
    timestamp_ms: int


@dataclass(frozen=True)
class TransactionRow:
    transaction_digest: str
    sender: str
    checkpoint_sequence_number: int
    timestamp_ms: Optional[int]
    transaction_kind: str
    created: tuple[str, ...]
    mutated: tuple[str, ...]
    deleted: tuple[str, ...]
    gas_object_id: str
    gas_budget: int
    total_gas_cost: int
    computation_cost: int
    storage_cost: int
    storage_rebate: int
    gas_price: int
    transaction_content: str
    transaction_effects_content: str
    # Assigned by the store on insert.
    id: Optional[int] = None


@dataclass(frozen=True)
class EventRow:
    transaction_digest: str
    epoch: int
    checkpoint_sequence_number: int
    event_sequence: int
    timestamp_ms: Optional[int]
    event_type: str
    event_content: str


@dataclass(frozen=True)
class MutatedObjectRow:
    object_id: str
    epoch: int
    checkpoint: int
    version: int
    object_digest: str
    owner_type: str
    owner_address: Optional[str]
    previous_transaction: str
    object_type: Optional[str]
    object_status: str = ObjectStatus.MUTATED.value


@dataclass(frozen=True)
class DeletedObjectRow:
    object_id: str
    epoch: int
    checkpoint: int
    version: int
    previous_transaction: str
    object_status: str = ObjectStatus.DELETED.value


@dataclass(frozen=True)
class TransactionObjectChanges:
    """Object changes originating from one transaction of a checkpoint."""

    mutated_objects: tuple[MutatedObjectRow, ...] = ()
    deleted_objects: tuple[DeletedObjectRow, ...] = ()


@dataclass(frozen=True)
class AddressRow:
    account_address: str
    first_appearance_tx: str
    first_appearance_time: Optional[int]


@dataclass(frozen=True)
class PackageRow:
    package_id: str
    version: int
    author: str
    module_names: tuple[str, ...]
    package_content: str


@dataclass(frozen=True)
class MoveCallRow:
    transaction_digest: str
    checkpoint_sequence_number: int
    epoch: int
    sender: str
    move_package: str
    move_module: str
    move_function: str


@dataclass(frozen=True)
class RecipientRow:
    transaction_digest: str
    checkpoint_sequence_number: int
    epoch: int
    recipient: str


@dataclass(frozen=True)
class ErrorLogRow:
    error_type: str
    error: str


@dataclass(frozen=True)
class CheckpointDelta:
    """Everything one checkpoint contributes to the store, persisted atomically."""

    checkpoint: CheckpointRow
    transactions: tuple[TransactionRow, ...] = ()
    events: tuple[EventRow, ...] = ()
    object_changes: tuple[TransactionObjectChanges, ...] = ()
    addresses: tuple[AddressRow, ...] = ()
    packages: tuple[PackageRow, ...] = ()
    move_calls: tuple[MoveCallRow, ...] = ()
    recipients: tuple[RecipientRow, ...] = ()

    @property
    def transaction_digests(self) -> tuple[str, ...]:
        return tuple(txn.transaction_digest for txn in self.transactions)


@dataclass(frozen=True)
class DigestPage:
    """One page of transaction digests in cursor order.

    ``row_ids`` runs parallel to ``digests``. ``next_cursor`` is the row id of
    the first row past this page; passing it back as ``start_cursor`` with the
    same direction continues without overlap.
    """

    digests: tuple[str, ...]
    row_ids: tuple[int, ...]
    has_more: bool
    next_cursor: Optional[int] = None

    def __len__(self) -> int:
        return len(self.digests)


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    return tuple(value)


def checkpoint_from_row(row: Mapping[str, Any]) -> CheckpointRow:
    return CheckpointRow(
        sequence_number=int(row["sequence_number"]),
        checkpoint_digest=str(row["checkpoint_digest"]),
        epoch=int(row["epoch"]),
        transactions=_as_tuple(row["transactions"]),
        previous_checkpoint_digest=row["previous_checkpoint_digest"],
        end_of_epoch=bool(row["end_of_epoch"]),
        total_gas_cost=int(row["total_gas_cost"]),
        total_computation_cost=int(row["total_computation_cost"]),
        total_storage_cost=int(row["total_storage_cost"]),
        total_storage_rebate=int(row["total_storage_rebate"]),
        total_transactions=int(row["total_transactions"]),
        timestamp_ms=int(row["timestamp_ms"]),
    )


def transaction_from_row(row: Mapping[str, Any]) -> TransactionRow:
    timestamp_ms = row["timestamp_ms"]
    return TransactionRow(
        id=int(row["id"]),
        transaction_digest=str(row["transaction_digest"]),
        sender=str(row["sender"]),
        checkpoint_sequence_number=int(row["checkpoint_sequence_number"]),
        timestamp_ms=int(timestamp_ms) if timestamp_ms is not None else None,
        transaction_kind=str(row["transaction_kind"]),
        created=_as_tuple(row["created"]),
        mutated=_as_tuple(row["mutated"]),
        deleted=_as_tuple(row["deleted"]),
        gas_object_id=str(row["gas_object_id"]),
        gas_budget=int(row["gas_budget"]),
        total_gas_cost=int(row["total_gas_cost"]),
        computation_cost=int(row["computation_cost"]),
        storage_cost=int(row["storage_cost"]),
        storage_rebate=int(row["storage_rebate"]),
        gas_price=int(row["gas_price"]),
        transaction_content=str(row["transaction_content"]),
        transaction_effects_content=str(row["transaction_effects_content"]),
    )
