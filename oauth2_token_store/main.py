import logging
import sys
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from oauth2_token_store.api.v1 import tokens

# Store and job loggers print to stdout alongside uvicorn
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
from oauth2_token_store.config import settings
from oauth2_token_store.db.session import init_db
from oauth2_token_store.services.cleanup_job import run_cleanup_job

if settings.debug:
    logging.getLogger("oauth2_token_store").setLevel(logging.DEBUG)

scheduler = AsyncIOScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.app_env != "production" or settings.is_sqlite:
        # Production schema comes from: alembic upgrade head
        await init_db()
    if settings.cleanup_interval_minutes > 0:
        scheduler.add_job(
            run_cleanup_job,
            "interval",
            minutes=settings.cleanup_interval_minutes,
            id="token_cleanup",
            max_instances=1,
            coalesce=True,
        )
    scheduler.start()
    yield
    scheduler.shutdown()


app = FastAPI(
    title="OAuth2 Token Store",
    description="Fingerprint-only persistence and validation of OAuth2 access/refresh tokens",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(tokens.router, prefix="/api/v1")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
def health():
    return {"status": "ok"}
