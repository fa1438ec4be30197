from oauth2_token_store.db.session import async_session_maker, build_engine, init_db
from oauth2_token_store.db.base import Base

__all__ = ["Base", "async_session_maker", "build_engine", "init_db"]
