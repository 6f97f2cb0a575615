"""001: create timestamp trigger function and party profile tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

Only the columns the order queues join for display names live here;
the rest of each profile belongs to the presentation layer.
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE profiles (
            id          VARCHAR(64)     PRIMARY KEY,
            name        VARCHAR(200),
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE TABLE dealer_profiles (
            id              VARCHAR(64)     PRIMARY KEY,
            business_name   VARCHAR(200),
            base_location   VARCHAR(200),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS dealer_profiles;")
    op.execute("DROP TABLE IF EXISTS profiles;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
