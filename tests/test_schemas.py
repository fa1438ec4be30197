"""Tests for TokenRecord validity helper and IssuedTokenResponse scope parsing."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from oauth2_token_store.schemas.token import IssuedTokenResponse, TokenRecord


def _record(**overrides) -> TokenRecord:
    fields = {
        "id": uuid.uuid4(),
        "access_fingerprint": "a" * 64,
        "client_id": "test-app",
        "issued_at": datetime.now(timezone.utc),
    }
    fields.update(overrides)
    return TokenRecord(**fields)


def test_record_without_expiry_is_active():
    assert _record().is_active()


def test_record_expired_or_revoked_is_inactive():
    now = datetime.now(timezone.utc)
    assert not _record(expires_at=now - timedelta(seconds=1)).is_active(now)
    assert not _record(revoked=True).is_active(now)
    assert _record(expires_at=now + timedelta(hours=1)).is_active(now)


def test_record_naive_timestamps_read_as_utc():
    """SQLite returns naive timestamps; they are stored in UTC."""
    rec = _record(issued_at=datetime(2026, 1, 1, 12, 0), expires_at=datetime(2026, 1, 1, 13, 0))
    assert rec.issued_at.tzinfo == timezone.utc
    assert rec.expires_at == datetime(2026, 1, 1, 13, 0, tzinfo=timezone.utc)


def test_record_is_immutable():
    rec = _record()
    with pytest.raises(PydanticValidationError):
        rec.revoked = True


def test_issued_token_response_scopes():
    resp = IssuedTokenResponse(access_token="at", scope="read  write")
    assert resp.scopes == ["read", "write"]
    assert IssuedTokenResponse(access_token="at").scopes == []


def test_issued_token_response_rejects_negative_expires_in():
    with pytest.raises(PydanticValidationError):
        IssuedTokenResponse(access_token="at", expires_in=-1)
