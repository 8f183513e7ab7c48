"""Initial schema for the balance-seconds ledger."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from alembic import op

logger = logging.getLogger(__name__)

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


ENUM_DDL: tuple[str, ...] = (
    "CREATE TYPE account_kind_enum AS ENUM ('FUNGIBLE_STORE', 'STAKING');",
    "CREATE TYPE transaction_type_enum AS ENUM ('DEPOSIT', 'WITHDRAW', 'STAKE', 'UNSTAKE');",
)

TABLE_DDL: tuple[str, ...] = (
    """
    CREATE TABLE vault (
        vault_id TEXT NOT NULL,
        created_at BIGINT NOT NULL,
        shares_metadata TEXT NOT NULL,
        created_at_version BIGINT NOT NULL,
        CONSTRAINT pk_vault PRIMARY KEY (vault_id),
        CONSTRAINT ck_vault_created_at_version_nonneg CHECK (created_at_version >= 0)
    );
    """,
    """
    CREATE TABLE store_metadata_cache (
        store_address TEXT NOT NULL,
        metadata TEXT NOT NULL,
        is_tracked BOOLEAN NOT NULL,
        vault_id TEXT,
        CONSTRAINT pk_store_metadata_cache PRIMARY KEY (store_address),
        CONSTRAINT fk_store_metadata_cache_vault FOREIGN KEY (vault_id)
            REFERENCES vault (vault_id) ON DELETE RESTRICT,
        CONSTRAINT ck_store_metadata_cache_vault_iff_tracked CHECK (
            (is_tracked AND vault_id IS NOT NULL) OR (NOT is_tracked AND vault_id IS NULL)
        )
    );
    """,
    """
    CREATE TABLE account_balance (
        account_id TEXT NOT NULL,
        kind account_kind_enum NOT NULL,
        vault_id TEXT,
        owner TEXT,
        token TEXT,
        balance NUMERIC(78,0) NOT NULL,
        last_observation_time BIGINT NOT NULL,
        cumulative_balance_seconds NUMERIC(78,0) NOT NULL,
        snapshot_count INTEGER NOT NULL,
        CONSTRAINT pk_account_balance PRIMARY KEY (account_id),
        CONSTRAINT fk_account_balance_vault FOREIGN KEY (vault_id)
            REFERENCES vault (vault_id) ON DELETE RESTRICT,
        CONSTRAINT ck_account_balance_id_not_blank CHECK (length(account_id) > 0),
        CONSTRAINT ck_account_balance_balance_nonneg CHECK (balance >= 0),
        CONSTRAINT ck_account_balance_cumulative_nonneg CHECK (cumulative_balance_seconds >= 0),
        CONSTRAINT ck_account_balance_snapshot_count_nonneg CHECK (snapshot_count >= 0)
    );
    """,
    """
    CREATE TABLE balance_snapshot (
        account_id TEXT NOT NULL,
        sequence INTEGER NOT NULL,
        filled_at BIGINT NOT NULL,
        balance NUMERIC(78,0) NOT NULL,
        cumulative_balance_seconds NUMERIC(78,0) NOT NULL,
        last_update_time BIGINT NOT NULL,
        CONSTRAINT pk_balance_snapshot PRIMARY KEY (account_id, sequence),
        CONSTRAINT fk_balance_snapshot_account_balance FOREIGN KEY (account_id)
            REFERENCES account_balance (account_id) ON DELETE RESTRICT,
        CONSTRAINT ck_balance_snapshot_sequence_pos CHECK (sequence >= 1),
        CONSTRAINT ck_balance_snapshot_window_order CHECK (filled_at <= last_update_time),
        CONSTRAINT ck_balance_snapshot_balance_nonneg CHECK (balance >= 0),
        CONSTRAINT ck_balance_snapshot_cumulative_nonneg CHECK (cumulative_balance_seconds >= 0)
    );
    """,
    """
    CREATE TABLE balance_transaction (
        transaction_id TEXT NOT NULL,
        account_id TEXT NOT NULL,
        kind account_kind_enum NOT NULL,
        timestamp BIGINT NOT NULL,
        type transaction_type_enum NOT NULL,
        amount NUMERIC(78,0) NOT NULL,
        transaction_version BIGINT NOT NULL,
        event_index INTEGER NOT NULL,
        signer TEXT,
        user_id TEXT,
        CONSTRAINT pk_balance_transaction PRIMARY KEY (transaction_id),
        CONSTRAINT ck_balance_transaction_amount_nonneg CHECK (amount >= 0),
        CONSTRAINT ck_balance_transaction_event_index_nonneg CHECK (event_index >= 0)
    );
    """,
    """
    CREATE TABLE ledger_user (
        user_address TEXT NOT NULL,
        first_seen_at BIGINT NOT NULL,
        CONSTRAINT pk_ledger_user PRIMARY KEY (user_address)
    );
    """,
    """
    CREATE TABLE vault_stats (
        stats_id TEXT NOT NULL,
        total_vault_count INTEGER NOT NULL,
        last_update_time BIGINT NOT NULL,
        CONSTRAINT pk_vault_stats PRIMARY KEY (stats_id),
        CONSTRAINT ck_vault_stats_count_nonneg CHECK (total_vault_count >= 0)
    );
    """,
    """
    CREATE TABLE fungible_asset_stats (
        stats_id TEXT NOT NULL,
        total_deposit_count INTEGER NOT NULL,
        total_withdraw_count INTEGER NOT NULL,
        unique_store_count INTEGER NOT NULL,
        tracked_store_count INTEGER NOT NULL,
        last_update_time BIGINT NOT NULL,
        CONSTRAINT pk_fungible_asset_stats PRIMARY KEY (stats_id),
        CONSTRAINT ck_fungible_asset_stats_counts_nonneg CHECK (
            total_deposit_count >= 0 AND total_withdraw_count >= 0
        ),
        CONSTRAINT ck_fungible_asset_stats_tracked_le_unique CHECK (tracked_store_count <= unique_store_count)
    );
    """,
    """
    CREATE TABLE staking_stats (
        stats_id TEXT NOT NULL,
        total_stake_count INTEGER NOT NULL,
        total_unstake_count INTEGER NOT NULL,
        unique_user_count INTEGER NOT NULL,
        tracked_staker_count INTEGER NOT NULL,
        last_update_time BIGINT NOT NULL,
        CONSTRAINT pk_staking_stats PRIMARY KEY (stats_id),
        CONSTRAINT ck_staking_stats_counts_nonneg CHECK (
            total_stake_count >= 0 AND total_unstake_count >= 0
        ),
        CONSTRAINT ck_staking_stats_tracked_le_unique CHECK (tracked_staker_count <= unique_user_count)
    );
    """,
)

INDEX_DDL: tuple[str, ...] = (
    "CREATE INDEX idx_vault_shares_metadata ON vault (shares_metadata);",
    "CREATE INDEX idx_balance_snapshot_account_filled_at_desc ON balance_snapshot (account_id, filled_at DESC);",
    "CREATE INDEX idx_balance_transaction_account_timestamp ON balance_transaction (account_id, timestamp);",
)

APPEND_ONLY_DDL: tuple[str, ...] = (
    """
    CREATE OR REPLACE FUNCTION fn_enforce_append_only()
    RETURNS trigger
    LANGUAGE plpgsql
    AS $$
    BEGIN
        RAISE EXCEPTION 'append-only table %: % is not allowed', TG_TABLE_NAME, TG_OP;
    END;
    $$;
    """,
    """
    CREATE TRIGGER trg_balance_transaction_append_only
    BEFORE UPDATE OR DELETE ON balance_transaction
    FOR EACH ROW EXECUTE FUNCTION fn_enforce_append_only();
    """,
    """
    CREATE OR REPLACE FUNCTION fn_balance_snapshot_no_delete()
    RETURNS trigger
    LANGUAGE plpgsql
    AS $$
    BEGIN
        RAISE EXCEPTION 'balance_snapshot rows are never deleted';
    END;
    $$;
    """,
    """
    CREATE TRIGGER trg_balance_snapshot_no_delete
    BEFORE DELETE ON balance_snapshot
    FOR EACH ROW EXECUTE FUNCTION fn_balance_snapshot_no_delete();
    """,
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
    """Apply the initial ledger schema migration."""

    logger.info("Starting initial schema migration upgrade.")
    _execute_all(ENUM_DDL)
    _execute_all(TABLE_DDL)
    _execute_all(INDEX_DDL)
    _execute_all(APPEND_ONLY_DDL)
    logger.info("Completed initial schema migration upgrade.")


def downgrade() -> None:
    """Revert the initial ledger schema migration."""

    logger.info("Starting initial schema migration downgrade.")
    _execute_all(
        (
            "DROP TRIGGER IF EXISTS trg_balance_snapshot_no_delete ON balance_snapshot;",
            "DROP TRIGGER IF EXISTS trg_balance_transaction_append_only ON balance_transaction;",
            "DROP FUNCTION IF EXISTS fn_balance_snapshot_no_delete();",
            "DROP FUNCTION IF EXISTS fn_enforce_append_only();",
            "DROP TABLE IF EXISTS staking_stats;",
            "DROP TABLE IF EXISTS fungible_asset_stats;",
            "DROP TABLE IF EXISTS vault_stats;",
            "DROP TABLE IF EXISTS ledger_user;",
            "DROP TABLE IF EXISTS balance_transaction;",
            "DROP TABLE IF EXISTS balance_snapshot;",
            "DROP TABLE IF EXISTS account_balance;",
            "DROP TABLE IF EXISTS store_metadata_cache;",
            "DROP TABLE IF EXISTS vault;",
            "DROP TYPE IF EXISTS transaction_type_enum;",
            "DROP TYPE IF EXISTS account_kind_enum;",
        )
    )
    logger.info("Completed initial schema migration downgrade.")
