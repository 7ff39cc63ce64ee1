"""Move-call and recipient lookup model definitions."""

from __future__ import annotations

import logging

from sqlalchemy import BigInteger, Index, PrimaryKeyConstraint, Sequence, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class MoveCall(Base):
    """One function call made by a transaction."""

    __tablename__ = "move_calls"
    __table_args__ = (
        PrimaryKeyConstraint("id", "epoch", name="pk_move_calls"),
        Index(
            "idx_move_calls_package_module_function_id",
            "move_package",
            "move_module",
            "move_function",
            "id",
        ),
        Index("idx_move_calls_transaction_digest", "transaction_digest"),
        {"postgresql_partition_by": "RANGE (epoch)"},
    )

    id: Mapped[int] = mapped_column(BigInteger, Sequence("move_calls_id_seq", start=0, minvalue=0), nullable=False)
    transaction_digest: Mapped[str] = mapped_column(Text, nullable=False)
    checkpoint_sequence_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    epoch: Mapped[int] = mapped_column(BigInteger, nullable=False)
    sender: Mapped[str] = mapped_column(Text, nullable=False)
    move_package: Mapped[str] = mapped_column(Text, nullable=False)
    move_module: Mapped[str] = mapped_column(Text, nullable=False)
    move_function: Mapped[str] = mapped_column(Text, nullable=False)


class Recipient(Base):
    """Payment recipient of a transaction."""

    __tablename__ = "recipients"
    __table_args__ = (
        PrimaryKeyConstraint("id", "epoch", name="pk_recipients"),
        Index("idx_recipients_recipient_id", "recipient", "id"),
        Index("idx_recipients_transaction_digest", "transaction_digest"),
        {"postgresql_partition_by": "RANGE (epoch)"},
    )

    id: Mapped[int] = mapped_column(BigInteger, Sequence("recipients_id_seq", start=0, minvalue=0), nullable=False)
    transaction_digest: Mapped[str] = mapped_column(Text, nullable=False)
    checkpoint_sequence_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    epoch: Mapped[int] = mapped_column(BigInteger, nullable=False)
    recipient: Mapped[str] = mapped_column(Text, nullable=False)
