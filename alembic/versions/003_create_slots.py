"""003: create slots table

Revision ID: 003
Revises: 002
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE slots (
            id                  VARCHAR(64)     PRIMARY KEY,
            issuer_id           VARCHAR(64)     NOT NULL REFERENCES principals(id) ON DELETE RESTRICT,
            tier                VARCHAR(16)     NOT NULL,
            category            TEXT            NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'OPEN',
            auction_ends_at     TIMESTAMPTZ     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_slots_tier CHECK (tier IN ('7_DAYS', '14_DAYS', '30_DAYS')),
            CONSTRAINT ck_slots_status CHECK (
                status IN ('OPEN', 'AUCTION_CLOSED', 'IN_PROGRESS', 'COMPLETED', 'BREACH', 'VOID')
            ),
            CONSTRAINT ck_slots_category_not_blank CHECK (LENGTH(TRIM(category)) > 0)
        );
    """)
    op.execute("CREATE INDEX idx_slots_status_ends_at ON slots (status, auction_ends_at);")
    op.execute("CREATE INDEX idx_slots_issuer ON slots (issuer_id);")
    op.execute("""
        CREATE TRIGGER trg_slots_updated_at
            BEFORE UPDATE ON slots
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS slots CASCADE;")
