"""Token record store: fingerprint-keyed persistence of issued OAuth2 tokens.

Every operation is a single statement in its own transaction, so the store is
stateless and any number of instances can share one database. Concurrent
inserts of the same fingerprint are serialized by the unique constraints, not
by application locks.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from sqlalchemy import ColumnElement, and_, delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from oauth2_token_store.config import settings
from oauth2_token_store.core.exceptions import DuplicateToken, InfrastructureError, ValidationError
from oauth2_token_store.core.fingerprint import fingerprint_token
from oauth2_token_store.core.metrics import TOKEN_STORE_CLEANUP_DELETED, TOKEN_STORE_OPERATIONS
from oauth2_token_store.db.functions import utcnow
from oauth2_token_store.models.oauth2_token import OAuth2Token
from oauth2_token_store.schemas.token import IssuedTokenResponse, TokenRecord

logger = logging.getLogger(__name__)


def _valid_now() -> ColumnElement[bool]:
    return and_(
        OAuth2Token.revoked.is_(False),
        or_(OAuth2Token.expires_at.is_(None), OAuth2Token.expires_at > utcnow()),
    )


def _purgeable() -> ColumnElement[bool]:
    return or_(
        OAuth2Token.revoked.is_(True),
        and_(OAuth2Token.expires_at.isnot(None), OAuth2Token.expires_at <= utcnow()),
    )


def _to_record(row: OAuth2Token) -> TokenRecord:
    return TokenRecord(
        id=row.id,
        access_fingerprint=row.access_token_hash,
        refresh_fingerprint=row.refresh_token_hash,
        client_id=row.client_id,
        user_id=row.user_id,
        scopes=list(row.scopes or []),
        issued_at=row.issued_at,
        expires_at=row.expires_at,
        revoked=row.revoked,
    )


def _duplicate_field(exc: IntegrityError) -> str | None:
    """Which unique fingerprint an IntegrityError was raised for, if any."""
    message = str(exc.orig)
    if "refresh_token_hash" in message:
        return "refresh_token"
    if "access_token_hash" in message:
        return "access_token"
    return None


def _short(fp: str) -> str:
    return fp[:12]


def _check_token(field: str, value: object) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(field, "must be a non-empty string")
    return value


def _check_scopes(scopes: Iterable[str]) -> list[str]:
    if isinstance(scopes, str):
        raise ValidationError("scopes", "must be a collection of scope strings, not a single string")
    try:
        items = list(scopes)
    except TypeError:
        raise ValidationError("scopes", "must be iterable") from None
    for scope in items:
        if not isinstance(scope, str) or not scope or any(c.isspace() for c in scope):
            raise ValidationError("scopes", f"invalid scope token {scope!r}")
    # Ordered set: keep first occurrence
    return list(dict.fromkeys(items))


def _check_user_id(user_id: uuid.UUID | str | None) -> uuid.UUID | None:
    if user_id is None or isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except ValueError:
        raise ValidationError("user_id", "must be a UUID") from None


def _check_expires_at(expires_at: datetime | None) -> datetime | None:
    if expires_at is None:
        return None
    if not isinstance(expires_at, datetime):
        raise ValidationError("expires_at", "must be a datetime")
    if expires_at.tzinfo is None or expires_at.utcoffset() is None:
        raise ValidationError("expires_at", "must be timezone-aware")
    return expires_at.astimezone(timezone.utc)


class TokenStore:
    """Store, look up, revoke and purge token records by fingerprint.

    ``session_maker`` is the pool handle owned by the surrounding service; the
    store never creates or disposes engines. ``fingerprint`` is replaceable so
    tests can force collisions.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        fingerprint: Callable[[str], str] = fingerprint_token,
        cleanup_batch_size: int | None = None,
    ):
        self._session_maker = session_maker
        self._fingerprint = fingerprint
        if cleanup_batch_size is None:
            cleanup_batch_size = settings.cleanup_batch_size
        self._cleanup_batch_size = cleanup_batch_size

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """One session, one transaction; database failures mapped to store errors."""
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    yield session
        except IntegrityError as e:
            field = _duplicate_field(e)
            if field is None:
                TOKEN_STORE_OPERATIONS.labels(operation=operation, outcome="error").inc()
                logger.exception("Token store %s: integrity error", operation)
                raise InfrastructureError(f"{operation} failed: integrity error") from e
            TOKEN_STORE_OPERATIONS.labels(operation=operation, outcome="duplicate").inc()
            raise DuplicateToken(field) from e
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            TOKEN_STORE_OPERATIONS.labels(operation=operation, outcome="error").inc()
            logger.exception("Token store %s failed: %s", operation, type(e).__name__)
            raise InfrastructureError(f"{operation} failed: {type(e).__name__}") from e

    async def store_token(
        self,
        raw_access_token: str,
        raw_refresh_token: str | None = None,
        *,
        client_id: str,
        user_id: uuid.UUID | str | None = None,
        scopes: Iterable[str] = (),
        expires_at: datetime | None = None,
    ) -> TokenRecord:
        """Insert a new grant. Raises DuplicateToken if either fingerprint is already stored."""
        _check_token("access_token", raw_access_token)
        if raw_refresh_token is not None:
            _check_token("refresh_token", raw_refresh_token)
            if raw_refresh_token == raw_access_token:
                raise ValidationError("refresh_token", "must differ from the access token")
        if not isinstance(client_id, str) or not client_id.strip():
            raise ValidationError("client_id", "must be a non-empty string")
        scope_list = _check_scopes(scopes)
        owner = _check_user_id(user_id)
        expiry = _check_expires_at(expires_at)

        access_fp = self._fingerprint(raw_access_token)
        refresh_fp = self._fingerprint(raw_refresh_token) if raw_refresh_token is not None else None
        stmt = (
            insert(OAuth2Token)
            .values(
                id=uuid.uuid4(),
                access_token_hash=access_fp,
                refresh_token_hash=refresh_fp,
                client_id=client_id,
                user_id=owner,
                scopes=scope_list,
                expires_at=expiry,
                revoked=False,
            )
            .returning(OAuth2Token)
        )
        try:
            async with self._transaction("store") as session:
                row = (await session.scalars(stmt)).one()
                record = _to_record(row)
        except DuplicateToken as e:
            logger.warning(
                "Token store: duplicate %s fingerprint %s… for client_id=%s",
                e.field,
                _short(refresh_fp if e.field == "refresh_token" else access_fp),
                client_id,
            )
            raise
        TOKEN_STORE_OPERATIONS.labels(operation="store", outcome="ok").inc()
        logger.info("Token store: stored id=%s client_id=%s", record.id, client_id)
        return record

    async def store_token_response(
        self,
        response: IssuedTokenResponse,
        *,
        client_id: str,
        user_id: uuid.UUID | str | None = None,
    ) -> TokenRecord:
        """Store a standard token response; ``expires_in`` becomes an absolute expiry."""
        expires_at = None
        if response.expires_in is not None:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=response.expires_in)
        return await self.store_token(
            response.access_token,
            response.refresh_token,
            client_id=client_id,
            user_id=user_id,
            scopes=response.scopes,
            expires_at=expires_at,
        )

    async def _get_valid(self, column, raw_token: str, operation: str) -> TokenRecord | None:
        if not raw_token:
            return None
        fp = self._fingerprint(raw_token)
        async with self._transaction(operation) as session:
            r = await session.execute(select(OAuth2Token).where(column == fp, _valid_now()))
            row = r.scalar_one_or_none()
            record = _to_record(row) if row is not None else None
        TOKEN_STORE_OPERATIONS.labels(operation=operation, outcome="hit" if record is not None else "miss").inc()
        return record

    async def get_by_access_token(self, raw_access_token: str) -> TokenRecord | None:
        """Valid (unrevoked, unexpired) record for an access token, else None."""
        return await self._get_valid(OAuth2Token.access_token_hash, raw_access_token, "get_by_access")

    async def get_by_refresh_token(self, raw_refresh_token: str) -> TokenRecord | None:
        """Valid (unrevoked, unexpired) record for a refresh token, else None."""
        return await self._get_valid(OAuth2Token.refresh_token_hash, raw_refresh_token, "get_by_refresh")

    async def _revoke(self, column, raw_token: str, operation: str) -> bool:
        if not raw_token:
            return False
        fp = self._fingerprint(raw_token)
        stmt = (
            update(OAuth2Token)
            .where(column == fp, OAuth2Token.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction(operation) as session:
            result = await session.execute(stmt)
            changed = result.rowcount > 0
        TOKEN_STORE_OPERATIONS.labels(operation=operation, outcome="changed" if changed else "unchanged").inc()
        logger.info("Token store: %s fingerprint=%s… changed=%s", operation, _short(fp), changed)
        return changed

    async def revoke_by_access_token(self, raw_access_token: str) -> bool:
        """Revoke the grant holding this access token. False if unknown or already revoked."""
        return await self._revoke(OAuth2Token.access_token_hash, raw_access_token, "revoke_by_access")

    async def revoke_by_refresh_token(self, raw_refresh_token: str) -> bool:
        """Revoke the grant holding this refresh token, its access token included."""
        return await self._revoke(OAuth2Token.refresh_token_hash, raw_refresh_token, "revoke_by_refresh")

    async def cleanup(self, batch_size: int | None = None) -> int:
        """Delete revoked or expired records in bounded batches; return how many were removed."""
        size = self._cleanup_batch_size if batch_size is None else batch_size
        if size < 1:
            raise ValidationError("batch_size", "must be positive")
        total = 0
        while True:
            # Not correlated: the subquery scans oauth2_tokens on its own
            candidates = (
                select(OAuth2Token.id)
                .where(_purgeable())
                .limit(size)
                .with_for_update(skip_locked=True)
                .correlate(None)
            )
            stmt = (
                delete(OAuth2Token)
                .where(OAuth2Token.id.in_(candidates), _purgeable())
                .execution_options(synchronize_session=False)
            )
            async with self._transaction("cleanup") as session:
                result = await session.execute(stmt)
                deleted = result.rowcount
            total += deleted
            if deleted < size:
                break
        TOKEN_STORE_OPERATIONS.labels(operation="cleanup", outcome="ok").inc()
        TOKEN_STORE_CLEANUP_DELETED.inc(total)
        logger.info("Token store: cleanup removed %s records", total)
        return total
