"""Create oauth2_tokens table.

Revision ID: 001
Revises:
Create Date: 2026-02-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "oauth2_tokens",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("access_token_hash", sa.Text(), nullable=False),
        sa.Column("refresh_token_hash", sa.Text(), nullable=True),
        sa.Column("client_id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("scopes", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_oauth2_tokens"),
        sa.UniqueConstraint("access_token_hash", name="uq_oauth2_tokens_access_token_hash"),
        sa.UniqueConstraint("refresh_token_hash", name="uq_oauth2_tokens_refresh_token_hash"),
    )
    op.create_index("ix_oauth2_tokens_access_token_hash", "oauth2_tokens", ["access_token_hash"])
    op.create_index("ix_oauth2_tokens_refresh_token_hash", "oauth2_tokens", ["refresh_token_hash"])
    op.create_index("ix_oauth2_tokens_expires_at", "oauth2_tokens", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_oauth2_tokens_expires_at", table_name="oauth2_tokens")
    op.drop_index("ix_oauth2_tokens_refresh_token_hash", table_name="oauth2_tokens")
    op.drop_index("ix_oauth2_tokens_access_token_hash", table_name="oauth2_tokens")
    op.drop_table("oauth2_tokens")
