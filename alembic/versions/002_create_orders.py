"""002: create orders table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            gig_id          VARCHAR(64)     NOT NULL,
            client_id       VARCHAR(64)     NOT NULL,
            dealer_id       VARCHAR(64)     NOT NULL,
            proposed_price  BIGINT          NOT NULL,
            agreed_price    BIGINT,
            notes           TEXT,
            scheduled_date  DATE,
            status          VARCHAR(20)     NOT NULL DEFAULT 'pending',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            opened_at       TIMESTAMPTZ,
            CONSTRAINT ck_orders_parties_differ     CHECK (client_id <> dealer_id),
            CONSTRAINT ck_orders_proposed_price     CHECK (proposed_price > 0),
            CONSTRAINT ck_orders_agreed_price       CHECK (agreed_price IS NULL OR agreed_price > 0),
            CONSTRAINT ck_orders_status             CHECK (
                status IN ('pending', 'countered', 'accepted', 'rejected',
                           'paid', 'in_progress', 'completed')
            ),
            CONSTRAINT ck_orders_priced_statuses    CHECK (
                status IN ('pending', 'rejected') OR agreed_price IS NOT NULL
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_dealer_created ON orders (dealer_id, created_at DESC);")
    op.execute("CREATE INDEX idx_orders_client_created ON orders (client_id, created_at DESC);")
    op.execute("""
        CREATE UNIQUE INDEX uq_orders_one_pending_request
        ON orders (client_id, dealer_id, gig_id)
        WHERE status = 'pending';
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE orders IS 'Service request negotiated between one client and one dealer';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
