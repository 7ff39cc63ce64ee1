"""Transaction and event model definitions."""

from __future__ import annotations

import logging

from sqlalchemy import (
    BigInteger,
    Identity,
    Index,
    PrimaryKeyConstraint,
    Sequence,
    Text,
    UniqueConstraint,
    desc,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class Transaction(Base):
    """Executed transaction with its effects summary."""

    __tablename__ = "transactions"
    __table_args__ = (
        PrimaryKeyConstraint("id", name="pk_transactions"),
        UniqueConstraint("transaction_digest", name="uq_transactions_digest"),
        Index("idx_transactions_sender_id", "sender", "id"),
        Index("idx_transactions_checkpoint", "checkpoint_sequence_number"),
        Index("idx_transactions_mutated", "mutated", postgresql_using="gin"),
    )

    id: Mapped[int] = mapped_column(BigInteger, Identity(always=True, start=0, minvalue=0), primary_key=True)
    transaction_digest: Mapped[str] = mapped_column(Text, nullable=False)
    sender: Mapped[str] = mapped_column(Text, nullable=False)
    checkpoint_sequence_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp_ms: Mapped[int | None] = mapped_column(BigInteger)
    transaction_kind: Mapped[str] = mapped_column(Text, nullable=False)
    created: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)
    mutated: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)
    deleted: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)
    gas_object_id: Mapped[str] = mapped_column(Text, nullable=False)
    gas_budget: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_gas_cost: Mapped[int] = mapped_column(BigInteger, nullable=False)
    computation_cost: Mapped[int] = mapped_column(BigInteger, nullable=False)
    storage_cost: Mapped[int] = mapped_column(BigInteger, nullable=False)
    storage_rebate: Mapped[int] = mapped_column(BigInteger, nullable=False)
    gas_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_content: Mapped[str] = mapped_column(Text, nullable=False)
    transaction_effects_content: Mapped[str] = mapped_column(Text, nullable=False)


class Event(Base):
    """Event emitted by a transaction, range-partitioned by epoch."""

    __tablename__ = "events"
    __table_args__ = (
        PrimaryKeyConstraint("id", "epoch", name="pk_events"),
        Index("idx_events_transaction_digest", "transaction_digest"),
        Index("idx_events_event_type_id_desc", "event_type", desc("id")),
        {"postgresql_partition_by": "RANGE (epoch)"},
    )

    id: Mapped[int] = mapped_column(BigInteger, Sequence("events_id_seq", start=0, minvalue=0), nullable=False)
    transaction_digest: Mapped[str] = mapped_column(Text, nullable=False)
    epoch: Mapped[int] = mapped_column(BigInteger, nullable=False)
    checkpoint_sequence_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    event_sequence: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp_ms: Mapped[int | None] = mapped_column(BigInteger)
    event_type: Mapped[str] = mapped_column(Text, nullable=False)
    event_content: Mapped[str] = mapped_column(Text, nullable=False)
