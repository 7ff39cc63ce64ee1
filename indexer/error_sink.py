"""Best-effort persistence of soft ingestion errors."""

from __future__ import annotations

import logging
from typing import Sequence

from indexer.checkpoint_writer import build_bulk_insert
from indexer.pg import TransactionMode, TransactionSource
from indexer.rows import ErrorLogRow

logger = logging.getLogger(__name__)

ERROR_LOG_COLUMNS: tuple[str, ...] = ("error_type", "error")


def error_log_row(error: BaseException) -> ErrorLogRow:
    return ErrorLogRow(error_type=type(error).__name__, error=str(error))


class ErrorSink:
    """Records upstream errors without ever failing the ingestion pipeline."""

    def __init__(self, source: TransactionSource) -> None:
        self._source = source

    def record(self, errors: Sequence[BaseException]) -> None:
        if not errors:
            return
        rows = [error_log_row(error) for error in errors]
        try:
            with self._source.transaction(TransactionMode.READ_WRITE) as db:
                for statement, params in build_bulk_insert("error_logs", ERROR_LOG_COLUMNS, rows):
                    db.execute(statement, params)
        except Exception:
            # Never propagated: a failing error log must not halt ingestion.
            logger.exception("Failed writing %d error logs.", len(rows))
