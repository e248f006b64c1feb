"""005: create bids table

Revision ID: 005
Revises: 004
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id                  VARCHAR(64)     PRIMARY KEY,
            slot_id             VARCHAR(64)     NOT NULL REFERENCES slots(id) ON DELETE CASCADE,
            bidder_id           VARCHAR(64)     NOT NULL REFERENCES principals(id) ON DELETE RESTRICT,
            amount              BIGINT          NOT NULL,
            escrow_status       VARCHAR(16)     NOT NULL DEFAULT 'LOCKED',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bids_amount_positive CHECK (amount > 0),
            CONSTRAINT ck_bids_escrow_status CHECK (
                escrow_status IN ('LOCKED', 'RELEASED', 'REFUNDED')
            )
        );
    """)
    # Matches the clearing order: amount desc, then earliest, then id.
    op.execute("""
        CREATE INDEX idx_bids_slot_ranking
            ON bids (slot_id, amount DESC, created_at ASC, id ASC);
    """)
    op.execute("CREATE INDEX idx_bids_bidder ON bids (bidder_id);")
    op.execute("""
        CREATE TRIGGER trg_bids_updated_at
            BEFORE UPDATE ON bids
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
