"""006: create contracts table

Revision ID: 006
Revises: 005
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE contracts (
            id                  VARCHAR(64)     PRIMARY KEY,
            slot_id             VARCHAR(64)     NOT NULL REFERENCES slots(id) ON DELETE CASCADE,
            winning_bid_id      VARCHAR(64)     NOT NULL REFERENCES bids(id) ON DELETE RESTRICT,
            clearing_price      BIGINT          NOT NULL,
            status              VARCHAR(16)     NOT NULL DEFAULT 'ACTIVE',
            started_at          TIMESTAMPTZ     NOT NULL,
            deadline_at         TIMESTAMPTZ     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_contracts_slot UNIQUE (slot_id),
            CONSTRAINT uq_contracts_winning_bid UNIQUE (winning_bid_id),
            CONSTRAINT ck_contracts_clearing_positive CHECK (clearing_price > 0),
            CONSTRAINT ck_contracts_status CHECK (status IN ('ACTIVE', 'COMPLETED', 'BREACH')),
            CONSTRAINT ck_contracts_deadline CHECK (deadline_at > started_at)
        );
    """)
    op.execute("CREATE INDEX idx_contracts_status_deadline ON contracts (status, deadline_at);")
    op.execute("""
        CREATE TRIGGER trg_contracts_updated_at
            BEFORE UPDATE ON contracts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS contracts CASCADE;")
