"""Initial schema for the checkpoint indexer store."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from alembic import op

logger = logging.getLogger(__name__)

# revision identifiers, used by Alembic.
revision: str = "0001_indexer_schema"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


PARTITIONED_TABLES: tuple[str, ...] = ("events", "move_calls", "recipients")

SEQUENCE_DDL: tuple[str, ...] = tuple(
    f"CREATE SEQUENCE {table}_id_seq AS BIGINT MINVALUE 0 START WITH 0;"
    for table in PARTITIONED_TABLES
)

TABLE_DDL: tuple[str, ...] = (
    """
    CREATE TABLE checkpoints (
        sequence_number BIGINT NOT NULL,
        checkpoint_digest TEXT NOT NULL,
        epoch BIGINT NOT NULL,
        transactions TEXT[] NOT NULL,
        previous_checkpoint_digest TEXT,
        end_of_epoch BOOLEAN NOT NULL,
        total_gas_cost BIGINT NOT NULL,
        total_computation_cost BIGINT NOT NULL,
        total_storage_cost BIGINT NOT NULL,
        total_storage_rebate BIGINT NOT NULL,
        total_transactions BIGINT NOT NULL,
        timestamp_ms BIGINT NOT NULL,
        CONSTRAINT pk_checkpoints PRIMARY KEY (sequence_number),
        CONSTRAINT uq_checkpoints_digest UNIQUE (checkpoint_digest),
        CONSTRAINT ck_checkpoints_sequence_nonneg CHECK (sequence_number >= 0),
        CONSTRAINT ck_checkpoints_epoch_nonneg CHECK (epoch >= 0)
    );
    """,
    """
    CREATE TABLE transactions (
        id BIGINT GENERATED ALWAYS AS IDENTITY (MINVALUE 0 START WITH 0),
        transaction_digest TEXT NOT NULL,
        sender TEXT NOT NULL,
        checkpoint_sequence_number BIGINT NOT NULL,
        timestamp_ms BIGINT,
        transaction_kind TEXT NOT NULL,
        created TEXT[] NOT NULL,
        mutated TEXT[] NOT NULL,
        deleted TEXT[] NOT NULL,
        gas_object_id TEXT NOT NULL,
        gas_budget BIGINT NOT NULL,
        total_gas_cost BIGINT NOT NULL,
        computation_cost BIGINT NOT NULL,
        storage_cost BIGINT NOT NULL,
        storage_rebate BIGINT NOT NULL,
        gas_price BIGINT NOT NULL,
        transaction_content TEXT NOT NULL,
        transaction_effects_content TEXT NOT NULL,
        CONSTRAINT pk_transactions PRIMARY KEY (id),
        CONSTRAINT uq_transactions_digest UNIQUE (transaction_digest)
    );
    """,
    """
    CREATE TABLE events (
        id BIGINT NOT NULL DEFAULT nextval('events_id_seq'),
        transaction_digest TEXT NOT NULL,
        epoch BIGINT NOT NULL,
        checkpoint_sequence_number BIGINT NOT NULL,
        event_sequence BIGINT NOT NULL,
        timestamp_ms BIGINT,
        event_type TEXT NOT NULL,
        event_content TEXT NOT NULL,
        CONSTRAINT pk_events PRIMARY KEY (id, epoch)
    ) PARTITION BY RANGE (epoch);
    """,
    """
    CREATE TABLE objects (
        object_id TEXT NOT NULL,
        epoch BIGINT NOT NULL,
        checkpoint BIGINT NOT NULL,
        version BIGINT NOT NULL,
        object_digest TEXT,
        owner_type TEXT,
        owner_address TEXT,
        previous_transaction TEXT NOT NULL,
        object_type TEXT,
        object_status TEXT NOT NULL,
        CONSTRAINT pk_objects PRIMARY KEY (object_id),
        CONSTRAINT ck_objects_status CHECK (object_status IN ('CREATED', 'MUTATED', 'DELETED', 'WRAPPED', 'UNWRAPPED', 'UNWRAPPED_THEN_DELETED')),
        CONSTRAINT ck_objects_owner_type CHECK (owner_type IS NULL OR owner_type IN ('ADDRESS_OWNER', 'OBJECT_OWNER', 'SHARED', 'IMMUTABLE')),
        CONSTRAINT ck_objects_version_nonneg CHECK (version >= 0)
    );
    """,
    """
    CREATE TABLE addresses (
        account_address TEXT NOT NULL,
        first_appearance_tx TEXT NOT NULL,
        first_appearance_time BIGINT,
        CONSTRAINT pk_addresses PRIMARY KEY (account_address),
        CONSTRAINT ck_addresses_not_blank CHECK (length(btrim(account_address)) > 0)
    );
    """,
    """
    CREATE TABLE packages (
        package_id TEXT NOT NULL,
        version BIGINT NOT NULL,
        author TEXT NOT NULL,
        module_names TEXT[] NOT NULL,
        package_content TEXT NOT NULL,
        CONSTRAINT pk_packages PRIMARY KEY (package_id, version),
        CONSTRAINT ck_packages_version_nonneg CHECK (version >= 0)
    );
    """,
    """
    CREATE TABLE move_calls (
        id BIGINT NOT NULL DEFAULT nextval('move_calls_id_seq'),
        transaction_digest TEXT NOT NULL,
        checkpoint_sequence_number BIGINT NOT NULL,
        epoch BIGINT NOT NULL,
        sender TEXT NOT NULL,
        move_package TEXT NOT NULL,
        move_module TEXT NOT NULL,
        move_function TEXT NOT NULL,
        CONSTRAINT pk_move_calls PRIMARY KEY (id, epoch)
    ) PARTITION BY RANGE (epoch);
    """,
    """
    CREATE TABLE recipients (
        id BIGINT NOT NULL DEFAULT nextval('recipients_id_seq'),
        transaction_digest TEXT NOT NULL,
        checkpoint_sequence_number BIGINT NOT NULL,
        epoch BIGINT NOT NULL,
        recipient TEXT NOT NULL,
        CONSTRAINT pk_recipients PRIMARY KEY (id, epoch)
    ) PARTITION BY RANGE (epoch);
    """,
    """
    CREATE TABLE error_logs (
        id BIGINT GENERATED ALWAYS AS IDENTITY (MINVALUE 0 START WITH 0),
        error_type TEXT NOT NULL,
        error TEXT NOT NULL,
        error_time TIMESTAMPTZ NOT NULL DEFAULT now(),
        CONSTRAINT pk_error_logs PRIMARY KEY (id)
    );
    """,
)

SEQUENCE_OWNERSHIP_DDL: tuple[str, ...] = tuple(
    f"ALTER SEQUENCE {table}_id_seq OWNED BY {table}.id;"
    for table in PARTITIONED_TABLES
)

PARTITION_DDL: tuple[str, ...] = tuple(
    f"CREATE TABLE {table}_partition_0 PARTITION OF {table} FOR VALUES FROM (0) TO (1);"
    for table in PARTITIONED_TABLES
)

INDEX_DDL: tuple[str, ...] = (
    "CREATE INDEX idx_checkpoints_epoch_sequence_desc ON checkpoints (epoch, sequence_number DESC);",
    "CREATE INDEX idx_transactions_sender_id ON transactions (sender, id);",
    "CREATE INDEX idx_transactions_checkpoint ON transactions (checkpoint_sequence_number);",
    "CREATE INDEX idx_transactions_mutated ON transactions USING gin (mutated);",
    "CREATE INDEX idx_events_transaction_digest ON events (transaction_digest);",
    "CREATE INDEX idx_events_event_type_id_desc ON events (event_type, id DESC);",
    "CREATE INDEX idx_objects_owner_address ON objects (owner_address);",
    "CREATE INDEX idx_objects_checkpoint ON objects (checkpoint);",
    (
        "CREATE INDEX idx_move_calls_package_module_function_id "
        "ON move_calls (move_package, move_module, move_function, id);"
    ),
    "CREATE INDEX idx_move_calls_transaction_digest ON move_calls (transaction_digest);",
    "CREATE INDEX idx_recipients_recipient_id ON recipients (recipient, id);",
    "CREATE INDEX idx_recipients_transaction_digest ON recipients (transaction_digest);",
    "CREATE INDEX idx_error_logs_error_time_desc ON error_logs (error_time DESC);",
)


def _execute_all(statements: Sequence[str]) -> None:
    """Execute an ordered sequence of SQL statements."""

    for statement in statements:
        try:
            op.execute(statement)
        except Exception:
            logger.exception("Migration statement failed.")
            raise


def upgrade() -> None:
    """Apply the initial indexer schema migration."""

    logger.info("Starting indexer schema migration upgrade.")
    _execute_all(SEQUENCE_DDL)
    _execute_all(TABLE_DDL)
    _execute_all(SEQUENCE_OWNERSHIP_DDL)
    _execute_all(PARTITION_DDL)
    _execute_all(INDEX_DDL)
    logger.info("Completed indexer schema migration upgrade.")


def downgrade() -> None:
    """Revert the initial indexer schema migration."""

    logger.info("Starting indexer schema migration downgrade.")
    # Dropping a partitioned parent drops every epoch partition with it.
    _execute_all(
        (
            "DROP TABLE IF EXISTS error_logs;",
            "DROP TABLE IF EXISTS recipients;",
            "DROP TABLE IF EXISTS move_calls;",
            "DROP TABLE IF EXISTS packages;",
            "DROP TABLE IF EXISTS addresses;",
            "DROP TABLE IF EXISTS objects;",
            "DROP TABLE IF EXISTS events;",
            "DROP TABLE IF EXISTS transactions;",
            "DROP TABLE IF EXISTS checkpoints;",
            "DROP SEQUENCE IF EXISTS recipients_id_seq;",
            "DROP SEQUENCE IF EXISTS move_calls_id_seq;",
            "DROP SEQUENCE IF EXISTS events_id_seq;",
        )
    )
    logger.info("Completed indexer schema migration downgrade.")
