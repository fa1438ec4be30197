"""FastAPI dependencies: token store bound to the shared session maker."""

from oauth2_token_store.config import settings
from oauth2_token_store.db.session import async_session_maker
from oauth2_token_store.services.token_store import TokenStore


def get_token_store() -> TokenStore:
    return TokenStore(async_session_maker, cleanup_batch_size=settings.cleanup_batch_size)
