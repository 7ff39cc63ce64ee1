#!/usr/bin/env python3
"""Maintenance CLI for the checkpoint indexer store."""

from __future__ import annotations

import argparse
from contextlib import contextmanager
import json
import logging
import os
from pathlib import Path
import sys
from typing import Any, Iterator

import psycopg

# Ensure repository root is importable when script is executed by path.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from indexer.errors import IndexerError
from indexer.store import PgIndexerStore


class SingleConnectionPool:
    """Lends one already-open connection; enough for a one-shot CLI run."""

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        self.conn = conn

    @contextmanager
    def connection(self) -> Iterator[psycopg.Connection[Any]]:
        yield self.conn


def _resolve_connection(args: argparse.Namespace) -> psycopg.Connection[Any]:
    if args.dsn:
        return psycopg.connect(args.dsn, autocommit=False)

    host = args.host or os.getenv("DB_HOST") or os.getenv("TEST_DB_HOST")
    port = args.port or os.getenv("DB_PORT") or os.getenv("TEST_DB_PORT")
    dbname = args.dbname or os.getenv("DB_NAME") or os.getenv("TEST_DB_NAME")
    user = args.user or os.getenv("DB_USER") or os.getenv("TEST_DB_USER")
    password = args.password or os.getenv("DB_PASSWORD") or os.getenv("TEST_DB_PASSWORD")

    missing = [
        key
        for key, value in (
            ("host", host),
            ("port", port),
            ("dbname", dbname),
            ("user", user),
            ("password", password),
        )
        if not value
    ]
    if missing:
        raise SystemExit(
            "Missing DB connection args. Provide --dsn or set --host/--port/--dbname/--user/--password "
            f"(missing: {', '.join(missing)})."
        )

    return psycopg.connect(
        host=host,
        port=port,
        dbname=dbname,
        user=user,
        password=password,
        autocommit=False,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Checkpoint indexer maintenance CLI")
    parser.add_argument("--dsn", help="PostgreSQL DSN (optional)")
    parser.add_argument("--host", help="DB host")
    parser.add_argument("--port", help="DB port")
    parser.add_argument("--dbname", help="DB name")
    parser.add_argument("--user", help="DB user")
    parser.add_argument("--password", help="DB password")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("partitions", help="List partitioned tables and their latest epoch")

    advance_cmd = subparsers.add_parser("advance-epoch", help="Create partitions for the next epoch")
    advance_cmd.add_argument("--epoch", required=True, type=int)

    subparsers.add_parser("latest-checkpoint", help="Show latest checkpoint and transaction count")

    return parser


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper())

    conn = _resolve_connection(args)
    try:
        store = PgIndexerStore(SingleConnectionPool(conn))

        if args.command == "partitions":
            payload: dict[str, Any] = {"partitions": store.partition_manager.registry.snapshot()}
        elif args.command == "advance-epoch":
            tables = store.advance_epoch(args.epoch)
            payload = {"epoch": args.epoch, "tables_partitioned": tables}
        else:
            payload = {
                "latest_checkpoint_sequence": store.latest_checkpoint_sequence(),
                "transaction_count": store.transaction_count(),
            }
        print(json.dumps(payload, sort_keys=True))
        return 0
    except IndexerError as exc:
        print(json.dumps({"error": type(exc).__name__, "detail": str(exc)}, sort_keys=True))
        return 1
    finally:
        conn.close()


if __name__ == "__main__":
    raise SystemExit(main())
