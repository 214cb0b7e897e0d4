from typing import Any, AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .database import async_session
from .domain.profile import ClientProfile
from .utils.auth import STAFF_ROLE, bearer_token, decode_access_token
from .utils.time import Clock, SystemClock


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_clock(settings: Settings = Depends(get_settings)) -> Clock:
    return SystemClock(settings.timezone)


def _token_claims(authorization: str | None, settings: Settings) -> dict[str, Any]:
    token = bearer_token(authorization)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Bearer token required")
    try:
        return decode_access_token(token, secret=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


async def get_client_profile(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> ClientProfile:
    claims = _token_claims(authorization, settings)
    email = claims["sub"]
    name = claims.get("name") or email.split("@")[0]
    return ClientProfile(email=email, name=name, phone=claims.get("phone") or "")


async def require_staff(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    claims = _token_claims(authorization, settings)
    if claims.get("role") != STAFF_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Staff access required")
    return claims["sub"]
