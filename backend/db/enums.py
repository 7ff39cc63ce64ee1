"""Value domains enforced by CHECK constraints in the indexer schema."""

from __future__ import annotations

import enum
import logging

logger = logging.getLogger(__name__)


class ObjectStatus(str, enum.Enum):
    """Latest known lifecycle status of an indexed object."""

    CREATED = "CREATED"
    MUTATED = "MUTATED"
    DELETED = "DELETED"
    WRAPPED = "WRAPPED"
    UNWRAPPED = "UNWRAPPED"
    UNWRAPPED_THEN_DELETED = "UNWRAPPED_THEN_DELETED"


class OwnerType(str, enum.Enum):
    """Ownership kind of a live object."""

    ADDRESS_OWNER = "ADDRESS_OWNER"
    OBJECT_OWNER = "OBJECT_OWNER"
    SHARED = "SHARED"
    IMMUTABLE = "IMMUTABLE"


def check_in(column: str, enum_cls: type[enum.Enum]) -> str:
    """Render a CHECK expression restricting ``column`` to the enum values."""
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"
