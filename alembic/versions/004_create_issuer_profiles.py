"""004: create issuer_profiles table

Revision ID: 004
Revises: 003
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE issuer_profiles (
            issuer_id           VARCHAR(64)     PRIMARY KEY REFERENCES principals(id) ON DELETE CASCADE,
            reserve_price       BIGINT          NOT NULL,
            active_slot_id      VARCHAR(64)     REFERENCES slots(id) ON DELETE SET NULL,
            category_tags       TEXT[]          NOT NULL DEFAULT ARRAY[]::TEXT[],
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_issuer_profiles_reserve_positive CHECK (reserve_price > 0)
        );
    """)
    # At most one profile can point at a given slot row.
    op.execute("""
        CREATE UNIQUE INDEX uq_issuer_profiles_active_slot
            ON issuer_profiles (active_slot_id)
            WHERE active_slot_id IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_issuer_profiles_updated_at
            BEFORE UPDATE ON issuer_profiles
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON COLUMN issuer_profiles.reserve_price IS 'Private, never exposed to bidders';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS issuer_profiles CASCADE;")
