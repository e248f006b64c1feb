"""002: create principals table

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE principals (
            id              VARCHAR(64)     PRIMARY KEY,
            kind            VARCHAR(16)     NOT NULL,
            verified        BOOLEAN         NOT NULL DEFAULT FALSE,
            display_name    VARCHAR(128),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_principals_kind CHECK (kind IN ('ISSUER', 'BIDDER'))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_principals_updated_at
            BEFORE UPDATE ON principals
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE principals IS 'Issuers and bidders; verified gates every lifecycle action';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS principals CASCADE;")
