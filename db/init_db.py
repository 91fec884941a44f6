"""
db/init_db.py
-------------
Schema for the ledger: transactions, budgets, recurring definitions and
saved reports. Run this module directly (or `main.py init-db`) against a
fresh database:
    python -m db.init_db
"""

import psycopg2

from db.connection import pooled_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS pgcrypto;

-- Transactions: every income or expense record
CREATE TABLE IF NOT EXISTS transactions (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         UUID NOT NULL,
    type            VARCHAR(10) NOT NULL CHECK (type IN ('income', 'expense')),
    amount          NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    currency        VARCHAR(5) DEFAULT 'EUR',
    category        TEXT NOT NULL,
    description     TEXT,
    date            DATE NOT NULL DEFAULT CURRENT_DATE,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Budgets: spending limit per category and period
CREATE TABLE IF NOT EXISTS budgets (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         UUID NOT NULL,
    category        TEXT NOT NULL,
    limit_amount    NUMERIC(12,2) NOT NULL CHECK (limit_amount >= 0),
    period          VARCHAR(10) NOT NULL CHECK (period IN ('weekly', 'monthly', 'yearly')),
    start_date      DATE NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Recurring transactions: templates materialized on a schedule
CREATE TABLE IF NOT EXISTS recurring_transactions (
    id                       UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id                  UUID NOT NULL,
    type                     VARCHAR(10) NOT NULL CHECK (type IN ('income', 'expense')),
    category                 TEXT NOT NULL,
    amount                   NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    description              TEXT,
    frequency                VARCHAR(20) NOT NULL
        CHECK (frequency IN ('daily', 'weekly', 'biweekly', 'monthly', 'quarterly', 'yearly')),
    start_date               DATE NOT NULL DEFAULT CURRENT_DATE,
    end_date                 DATE,
    next_occurrence_date     DATE NOT NULL,
    last_processed_date      DATE,
    is_active                BOOLEAN NOT NULL DEFAULT TRUE,
    notification_enabled     BOOLEAN NOT NULL DEFAULT TRUE,
    notification_days_before INT NOT NULL DEFAULT 1 CHECK (notification_days_before >= 0),
    created_at               TIMESTAMPTZ DEFAULT NOW(),
    updated_at               TIMESTAMPTZ DEFAULT NOW()
);

-- Reports: saved custom report definitions
CREATE TABLE IF NOT EXISTS reports (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id         UUID NOT NULL,
    name            TEXT NOT NULL,
    description     TEXT,
    report_type     TEXT NOT NULL
        CHECK (report_type IN ('income_expense', 'category', 'trend', 'budget', 'custom')),
    date_range      JSONB NOT NULL,
    filters         JSONB,
    grouping        TEXT CHECK (grouping IN ('day', 'week', 'month', 'year')),
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_transactions_user_date ON transactions(user_id, date);
CREATE INDEX IF NOT EXISTS idx_transactions_category ON transactions(user_id, category);
CREATE INDEX IF NOT EXISTS idx_budgets_user_period ON budgets(user_id, period);
CREATE INDEX IF NOT EXISTS idx_recurring_active_next
    ON recurring_transactions(user_id, next_occurrence_date) WHERE is_active = TRUE;
CREATE INDEX IF NOT EXISTS idx_reports_user ON reports(user_id, created_at DESC);
"""


TABLES = ("transactions", "budgets", "recurring_transactions", "reports")


def create_tables() -> None:
    """
    Create the extension, tables and indexes in one transaction.
    Idempotent: every statement uses IF NOT EXISTS.
    """
    try:
        with pooled_connection() as conn, conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
    except psycopg2.Error as e:
        logger.error(f"Schema initialization failed: {e}")
        raise
    logger.info(f"Schema ready: {', '.join(TABLES)}")


if __name__ == "__main__":
    from db.connection import close_pool, init_pool
    init_pool()
    try:
        create_tables()
    finally:
        close_pool()
    print("✅ Database schema created successfully.")
