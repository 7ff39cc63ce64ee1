"""Address and package model definitions."""

from __future__ import annotations

import logging

from sqlalchemy import BigInteger, CheckConstraint, PrimaryKeyConstraint, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base

logger = logging.getLogger(__name__)


class Address(Base):
    """Account address recorded at first appearance."""

    __tablename__ = "addresses"
    __table_args__ = (
        PrimaryKeyConstraint("account_address", name="pk_addresses"),
        CheckConstraint("length(btrim(account_address)) > 0", name="ck_addresses_not_blank"),
    )

    account_address: Mapped[str] = mapped_column(Text, nullable=False)
    first_appearance_tx: Mapped[str] = mapped_column(Text, nullable=False)
    first_appearance_time: Mapped[int | None] = mapped_column(BigInteger)


class Package(Base):
    """Published package version; upgrades add new rows."""

    __tablename__ = "packages"
    __table_args__ = (
        PrimaryKeyConstraint("package_id", "version", name="pk_packages"),
        CheckConstraint("version >= 0", name="ck_packages_version_nonneg"),
    )

    package_id: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    module_names: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)
    package_content: Mapped[str] = mapped_column(Text, nullable=False)
