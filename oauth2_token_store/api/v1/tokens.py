"""Tokens: store issued tokens, look up, introspect, revoke, cleanup."""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from oauth2_token_store.api.deps import get_token_store
from oauth2_token_store.config import settings
from oauth2_token_store.core.exceptions import DuplicateToken, InfrastructureError, ValidationError
from oauth2_token_store.schemas.token import IssuedTokenResponse, TokenRecord
from oauth2_token_store.services.token_store import TokenStore

router = APIRouter(prefix="/tokens", tags=["tokens"])

UNAVAILABLE_DETAIL = "Token store temporarily unavailable"


class StoreTokenBody(IssuedTokenResponse):
    client_id: str
    user_id: UUID | None = None


class TokenOut(BaseModel):
    id: UUID
    client_id: str
    user_id: UUID | None
    scopes: list[str]
    issued_at: datetime
    expires_at: datetime | None
    revoked: bool


class TokenBody(BaseModel):
    token: str
    token_type_hint: Literal["access_token", "refresh_token"] | None = None


class IntrospectionOut(BaseModel):
    """RFC 7662 introspection response; only ``active`` is set for unknown tokens."""

    active: bool
    client_id: str | None = None
    sub: str | None = None
    scope: str | None = None
    iat: int | None = None
    exp: int | None = None


class RevokeOut(BaseModel):
    revoked: bool


class CleanupOut(BaseModel):
    deleted: int


def _token_out(record: TokenRecord) -> TokenOut:
    return TokenOut(
        id=record.id,
        client_id=record.client_id,
        user_id=record.user_id,
        scopes=record.scopes,
        issued_at=record.issued_at,
        expires_at=record.expires_at,
        revoked=record.revoked,
    )


def _unavailable(e: InfrastructureError) -> HTTPException:
    detail = UNAVAILABLE_DETAIL
    if settings.debug:
        detail += f" ({e})"
    return HTTPException(status_code=503, detail=detail)


async def _lookup(store: TokenStore, token: str, hint: str | None) -> TokenRecord | None:
    """Try the hinted token type first, then the other one (RFC 7662 section 2.1)."""
    lookups = [store.get_by_access_token, store.get_by_refresh_token]
    if hint == "refresh_token":
        lookups.reverse()
    for lookup in lookups:
        record = await lookup(token)
        if record is not None:
            return record
    return None


@router.post(
    "",
    response_model=TokenOut,
    status_code=201,
    summary="Store an issued token response",
    responses={
        409: {"description": "Access or refresh token already stored"},
        422: {"description": "Malformed token metadata"},
        503: {"description": "Token store unavailable"},
    },
)
async def store_token(
    store: Annotated[TokenStore, Depends(get_token_store)],
    body: StoreTokenBody,
) -> TokenOut:
    try:
        record = await store.store_token_response(body, client_id=body.client_id, user_id=body.user_id)
    except DuplicateToken as e:
        raise HTTPException(status_code=409, detail=f"Duplicate {e.field or 'token'}; re-issue with a fresh token") from e
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except InfrastructureError as e:
        raise _unavailable(e) from e
    return _token_out(record)


@router.post(
    "/introspect",
    response_model=IntrospectionOut,
    response_model_exclude_none=True,
    summary="Introspect a token (active or not)",
    responses={503: {"description": "Token store unavailable"}},
)
async def introspect_token(
    store: Annotated[TokenStore, Depends(get_token_store)],
    body: TokenBody,
) -> IntrospectionOut:
    try:
        record = await _lookup(store, body.token, body.token_type_hint)
    except InfrastructureError as e:
        raise _unavailable(e) from e
    if record is None:
        return IntrospectionOut(active=False)
    return IntrospectionOut(
        active=True,
        client_id=record.client_id,
        sub=str(record.user_id) if record.user_id else None,
        scope=" ".join(record.scopes),
        iat=int(record.issued_at.timestamp()),
        exp=int(record.expires_at.timestamp()) if record.expires_at else None,
    )


@router.post(
    "/revoke",
    response_model=RevokeOut,
    summary="Revoke a token and its paired token",
    responses={503: {"description": "Token store unavailable"}},
)
async def revoke_token(
    store: Annotated[TokenStore, Depends(get_token_store)],
    body: TokenBody,
) -> RevokeOut:
    """Unknown and already-revoked tokens are not errors (RFC 7009 section 2.2)."""
    revokers = [store.revoke_by_access_token, store.revoke_by_refresh_token]
    if body.token_type_hint == "refresh_token":
        revokers.reverse()
    try:
        for revoke in revokers:
            if await revoke(body.token):
                return RevokeOut(revoked=True)
    except InfrastructureError as e:
        raise _unavailable(e) from e
    return RevokeOut(revoked=False)


@router.post(
    "/cleanup",
    response_model=CleanupOut,
    summary="Delete expired and revoked tokens",
    responses={503: {"description": "Token store unavailable"}},
)
async def cleanup_tokens(store: Annotated[TokenStore, Depends(get_token_store)]) -> CleanupOut:
    try:
        deleted = await store.cleanup()
    except InfrastructureError as e:
        raise _unavailable(e) from e
    return CleanupOut(deleted=deleted)


@router.post(
    "/lookup",
    response_model=TokenOut,
    summary="Get a valid token by access token value",
    responses={
        404: {"description": "Token unknown, expired or revoked"},
        503: {"description": "Token store unavailable"},
    },
)
async def lookup_token(
    store: Annotated[TokenStore, Depends(get_token_store)],
    body: TokenBody,
) -> TokenOut:
    """Token goes in the body, not the path, so access logs never record it."""
    try:
        record = await store.get_by_access_token(body.token)
    except InfrastructureError as e:
        raise _unavailable(e) from e
    if record is None:
        raise HTTPException(status_code=404, detail="Token not found")
    return _token_out(record)
