"""Latest-state object model definitions."""

from __future__ import annotations

import logging

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Index,
    PrimaryKeyConstraint,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base
from backend.db.enums import ObjectStatus, OwnerType, check_in

logger = logging.getLogger(__name__)


class ObjectState(Base):
    """Latest known state of one object; mutations and deletions overwrite it."""

    __tablename__ = "objects"
    __table_args__ = (
        PrimaryKeyConstraint("object_id", name="pk_objects"),
        CheckConstraint(check_in("object_status", ObjectStatus), name="ck_objects_status"),
        CheckConstraint(
            f"owner_type IS NULL OR {check_in('owner_type', OwnerType)}",
            name="ck_objects_owner_type",
        ),
        CheckConstraint("version >= 0", name="ck_objects_version_nonneg"),
        Index("idx_objects_owner_address", "owner_address"),
        Index("idx_objects_checkpoint", "checkpoint"),
    )

    object_id: Mapped[str] = mapped_column(Text, nullable=False)
    epoch: Mapped[int] = mapped_column(BigInteger, nullable=False)
    checkpoint: Mapped[int] = mapped_column(BigInteger, nullable=False)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False)
    object_digest: Mapped[str | None] = mapped_column(Text)
    owner_type: Mapped[str | None] = mapped_column(Text)
    owner_address: Mapped[str | None] = mapped_column(Text)
    previous_transaction: Mapped[str] = mapped_column(Text, nullable=False)
    object_type: Mapped[str | None] = mapped_column(Text)
    object_status: Mapped[str] = mapped_column(Text, nullable=False)
