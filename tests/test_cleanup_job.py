"""Tests for the scheduled cleanup job."""

import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from oauth2_token_store.services.cleanup_job import run_cleanup_job
from oauth2_token_store.services.token_store import TokenStore


@pytest.mark.asyncio
async def test_cleanup_job_removes_revoked_tokens(session_maker, row_count):
    store = TokenStore(session_maker)
    revoked, kept = uuid.uuid4().hex, uuid.uuid4().hex
    await store.store_token(revoked, client_id="c")
    await store.store_token(kept, client_id="c")
    await store.revoke_by_access_token(revoked)

    assert await run_cleanup_job(session_maker) == 1
    assert await row_count() == 1
    assert await store.get_by_access_token(kept) is not None


@pytest.mark.asyncio
async def test_cleanup_job_logs_and_swallows_store_failure(caplog):
    broken = MagicMock(side_effect=OperationalError("DELETE", {}, ConnectionRefusedError("refused")))
    assert await run_cleanup_job(broken) is None
    assert "Cleanup job: failed" in caplog.text
