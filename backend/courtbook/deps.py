from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .database import async_session
from .utils.auth import decode_access_token


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "UNAUTHORIZED", "message": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_requester_id(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    """Requester id from `Authorization: Bearer <jwt>`; the token is issued by the identity provider."""
    if authorization is None:
        raise _unauthorized("bearer token required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("bearer token required")
    try:
        return decode_access_token(
            token.strip(),
            secret=settings.auth_secret,
            algorithms=[settings.auth_algorithm],
        )
    except ValueError as exc:
        raise _unauthorized("invalid or expired token") from exc
