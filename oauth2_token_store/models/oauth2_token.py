"""Persisted OAuth2 token grant: fingerprints plus metadata, never the raw token values."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Text, Uuid, false, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from oauth2_token_store.db.base import Base


class OAuth2Token(Base):
    __tablename__ = "oauth2_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    access_token_hash: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    # NULLs never collide, so at most one row per refresh fingerprint
    refresh_token_hash: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    client_id: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    scopes: Mapped[list[str]] = mapped_column(
        ARRAY(Text).with_variant(JSON(), "sqlite"), nullable=False
    )
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
