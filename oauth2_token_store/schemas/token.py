"""Token record and issued-token schemas."""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenRecord(BaseModel):
    """A stored token grant as returned by the store. Carries fingerprints, never raw tokens."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    access_fingerprint: str
    refresh_fingerprint: str | None = None
    client_id: str
    user_id: UUID | None = None
    scopes: list[str] = Field(default_factory=list)
    issued_at: datetime
    expires_at: datetime | None = None
    revoked: bool = False

    @field_validator("issued_at", "expires_at")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        # SQLite hands timestamps back naive; they are stored as UTC.
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_active(self, now: datetime | None = None) -> bool:
        """Same predicate the lookups apply in SQL: not revoked and not past expiry."""
        if self.revoked:
            return False
        if self.expires_at is None:
            return True
        return self.expires_at > (now or datetime.now(timezone.utc))


class IssuedTokenResponse(BaseModel):
    """Successful OAuth2 token response (RFC 6749 section 5.1) as produced by the issuer."""

    access_token: str = Field(min_length=1)
    token_type: str = "bearer"
    expires_in: int | None = Field(None, ge=0, description="Access token lifetime in seconds")
    refresh_token: str | None = None
    scope: str | None = Field(None, description="Space-separated granted scopes")

    @property
    def scopes(self) -> list[str]:
        return (self.scope or "").split()
