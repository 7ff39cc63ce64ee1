"""Model module imports for SQLAlchemy metadata registration."""

from __future__ import annotations

import logging

from backend.db.models.address import Address, Package
from backend.db.models.checkpoint import Checkpoint
from backend.db.models.error_log import ErrorLog
from backend.db.models.move_call import MoveCall, Recipient
from backend.db.models.object import ObjectState
from backend.db.models.transaction import Event, Transaction

logger = logging.getLogger(__name__)

__all__ = [
    "Address",
    "Checkpoint",
    "ErrorLog",
    "Event",
    "MoveCall",
    "ObjectState",
    "Package",
    "Recipient",
    "Transaction",
]
