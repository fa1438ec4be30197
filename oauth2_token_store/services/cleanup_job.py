"""Scheduled purge of revoked and expired token records."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from oauth2_token_store.config import settings
from oauth2_token_store.core.exceptions import TokenStoreError
from oauth2_token_store.services.token_store import TokenStore

logger = logging.getLogger(__name__)


async def run_cleanup_job(session_maker: async_sessionmaker[AsyncSession] | None = None) -> int | None:
    """
    Scheduled job: delete revoked/expired tokens in batches.
    Failures are logged and the next run retries; returns the deleted count or None on failure.
    """
    if session_maker is None:
        from oauth2_token_store.db.session import async_session_maker

        session_maker = async_session_maker
    store = TokenStore(session_maker, cleanup_batch_size=settings.cleanup_batch_size)
    try:
        deleted = await store.cleanup()
    except TokenStoreError as e:
        logger.warning("Cleanup job: failed: %s", e)
        return None
    logger.info("Cleanup job: removed %s expired/revoked tokens", deleted)
    return deleted
