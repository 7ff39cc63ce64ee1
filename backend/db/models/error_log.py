"""Ingestion error log model definitions."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Identity, Index, PrimaryKeyConstraint, Text, desc, text
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class ErrorLog(Base):
    """Soft error reported by upstream checkpoint processing."""

    __tablename__ = "error_logs"
    __table_args__ = (
        PrimaryKeyConstraint("id", name="pk_error_logs"),
        Index("idx_error_logs_error_time_desc", desc("error_time")),
    )

    id: Mapped[int] = mapped_column(BigInteger, Identity(always=True, start=0, minvalue=0), primary_key=True)
    error_type: Mapped[str] = mapped_column(Text, nullable=False)
    error: Mapped[str] = mapped_column(Text, nullable=False)
    error_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
