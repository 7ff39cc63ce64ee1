"""Error taxonomy for indexer reads, writes and lookups."""

from __future__ import annotations

from typing import Sequence


class IndexerError(RuntimeError):
    """Base class for failures surfaced by the indexer store."""


class ReadError(IndexerError):
    """A read-only query failed against the backing store."""

    def __init__(self, operation: str, params: dict[str, object], cause: BaseException) -> None:
        self.operation = operation
        self.params = dict(params)
        rendered = ", ".join(f"{key}={value!r}" for key, value in self.params.items())
        super().__init__(f"Failed reading {operation} ({rendered}): {cause}")


class WriteError(IndexerError):
    """A persist or partition-advance transaction failed and was rolled back."""

    def __init__(
        self,
        message: str,
        *,
        transaction_digests: Sequence[str] = (),
        epoch: int | None = None,
    ) -> None:
        self.transaction_digests = tuple(transaction_digests)
        self.epoch = epoch
        super().__init__(message)


class NotFoundError(IndexerError, LookupError):
    """A lookup matched no row; callers treat this as an empty result."""
