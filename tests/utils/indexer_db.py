"""Schema loading and connection helpers for DB-backed indexer tests."""

from __future__ import annotations

from contextlib import contextmanager
import importlib.util
from pathlib import Path
import sys
from typing import Any, Iterator

from psycopg import Connection

MIGRATION_PATH = (
    Path(__file__).resolve().parents[2]
    / "backend"
    / "db"
    / "migrations"
    / "versions"
    / "0001_indexer_schema.py"
)


def load_migration_module(module_name: str = "indexer_migration_0001") -> Any:
    spec = importlib.util.spec_from_file_location(module_name, MIGRATION_PATH)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


def schema_statements(module: Any) -> tuple[str, ...]:
    """Upgrade DDL in the order ``upgrade()`` applies it."""
    return (
        *module.SEQUENCE_DDL,
        *module.TABLE_DDL,
        *module.SEQUENCE_OWNERSHIP_DDL,
        *module.PARTITION_DDL,
        *module.INDEX_DDL,
    )


class SingleConnectionPool:
    """Pool stand-in lending one connection per operation, sequentially."""

    def __init__(self, conn: Connection[Any]) -> None:
        self.conn = conn
        self.borrowed = 0

    @contextmanager
    def connection(self) -> Iterator[Connection[Any]]:
        self.borrowed += 1
        yield self.conn
