"""Pytest fixtures shared across unit and integration tests."""

from __future__ import annotations

import os
from typing import Any
from uuid import uuid4

import psycopg
from psycopg import sql
import pytest

from indexer.pg import PooledTransactions
from indexer.store import PgIndexerStore
from tests.utils.indexer_db import SingleConnectionPool, load_migration_module, schema_statements


@pytest.fixture(scope="session")
def pg_conn() -> Any:
    """Session-scoped psycopg connection for integration tests."""
    host = os.getenv("TEST_DB_HOST")
    port = os.getenv("TEST_DB_PORT")
    dbname = os.getenv("TEST_DB_NAME")
    user = os.getenv("TEST_DB_USER")
    password = os.getenv("TEST_DB_PASSWORD")

    if not all([host, port, dbname, user, password]):
        pytest.skip("Integration DB env vars are missing; set TEST_DB_HOST/PORT/NAME/USER/PASSWORD")

    conn = psycopg.connect(
        host=host,
        port=port,
        dbname=dbname,
        user=user,
        password=password,
        autocommit=False,
    )
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def indexer_pool(pg_conn: Any) -> Any:
    """Fresh schema built from the migration DDL, dropped after the test."""
    schema = f"indexer_it_{uuid4().hex[:12]}"
    migration = load_migration_module()
    with pg_conn.cursor() as cur:
        cur.execute(sql.SQL("CREATE SCHEMA {}").format(sql.Identifier(schema)))
        cur.execute(sql.SQL("SET search_path TO {}").format(sql.Identifier(schema)))
        for statement in schema_statements(migration):
            cur.execute(statement)
    pg_conn.commit()
    try:
        yield SingleConnectionPool(pg_conn)
    finally:
        pg_conn.rollback()
        with pg_conn.cursor() as cur:
            cur.execute(sql.SQL("DROP SCHEMA {} CASCADE").format(sql.Identifier(schema)))
            cur.execute("SET search_path TO DEFAULT")
        pg_conn.commit()


@pytest.fixture
def indexer_source(indexer_pool: SingleConnectionPool) -> PooledTransactions:
    return PooledTransactions(indexer_pool)


@pytest.fixture
def indexer_store(indexer_pool: SingleConnectionPool) -> PgIndexerStore:
    return PgIndexerStore(indexer_pool)
