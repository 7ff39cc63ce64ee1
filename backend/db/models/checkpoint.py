"""Checkpoint model definitions."""

from __future__ import annotations

import logging

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Index,
    PrimaryKeyConstraint,
    Text,
    UniqueConstraint,
    desc,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class Checkpoint(Base):
    """One ledger checkpoint, written exactly once."""

    __tablename__ = "checkpoints"
    __table_args__ = (
        PrimaryKeyConstraint("sequence_number", name="pk_checkpoints"),
        UniqueConstraint("checkpoint_digest", name="uq_checkpoints_digest"),
        CheckConstraint("sequence_number >= 0", name="ck_checkpoints_sequence_nonneg"),
        CheckConstraint("epoch >= 0", name="ck_checkpoints_epoch_nonneg"),
        Index("idx_checkpoints_epoch_sequence_desc", "epoch", desc("sequence_number")),
    )

    sequence_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    checkpoint_digest: Mapped[str] = mapped_column(Text, nullable=False)
    epoch: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transactions: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)
    previous_checkpoint_digest: Mapped[str | None] = mapped_column(Text)
    end_of_epoch: Mapped[bool] = mapped_column(Boolean, nullable=False)
    total_gas_cost: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_computation_cost: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_storage_cost: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_storage_rebate: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_transactions: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
