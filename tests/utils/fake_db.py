"""In-memory transaction source recording SQL for unit tests."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Optional, Sequence

from indexer.pg import TransactionMode

Responder = Callable[[Any, Mapping[str, Any]], Sequence[Mapping[str, Any]]]
Failure = Callable[[Any], Optional[BaseException]]


def _no_rows(statement: Any, params: Mapping[str, Any]) -> Sequence[Mapping[str, Any]]:
    return []


def inserted_table(statement: Any) -> Optional[str]:
    if not isinstance(statement, str) or not statement.startswith("INSERT INTO "):
        return None
    return statement[len("INSERT INTO ") :].split(" ", 1)[0]


class FakeSession:
    def __init__(self, source: "FakeTransactions") -> None:
        self._source = source

    def fetch_one(self, statement: Any, params: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
        rows = self.fetch_all(statement, params)
        return rows[0] if rows else None

    def fetch_all(self, statement: Any, params: Mapping[str, Any]) -> Sequence[Mapping[str, Any]]:
        self._source.calls.append(("fetch", statement, dict(params)))
        failure = self._source.fail_when(statement)
        if failure is not None:
            raise failure
        return [dict(row) for row in self._source.responder(statement, params)]

    def execute(self, statement: Any, params: Optional[Mapping[str, Any]] = None) -> int:
        self._source.calls.append(("execute", statement, dict(params or {})))
        failure = self._source.fail_when(statement)
        if failure is not None:
            raise failure
        if isinstance(statement, str):
            return statement.count("(:")
        return 0


class FakeTransactions:
    """Transaction source whose sessions record every statement."""

    def __init__(
        self,
        responder: Responder = _no_rows,
        fail_when: Failure = lambda statement: None,
    ) -> None:
        self.responder = responder
        self.fail_when = fail_when
        self.calls: list[tuple[str, Any, dict[str, Any]]] = []
        self.modes: list[TransactionMode] = []
        self.committed = 0
        self.rolled_back = 0

    @contextmanager
    def transaction(self, mode: TransactionMode) -> Iterator[FakeSession]:
        self.modes.append(mode)
        try:
            yield FakeSession(self)
        except BaseException:
            self.rolled_back += 1
            raise
        self.committed += 1

    def executed(self) -> list[tuple[Any, dict[str, Any]]]:
        return [(statement, params) for kind, statement, params in self.calls if kind == "execute"]

    def inserted_tables(self) -> list[Optional[str]]:
        return [inserted_table(statement) for statement, _ in self.executed()]
