"""Authentication helpers for API routes.

Users and tokens are issued by the authentication service; this module only
resolves a bearer token to its user and checks the ingest trigger secret.
"""

from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.services import get_app_settings, get_session
from app.config import AppSettings
from app.models import AuthToken, User

logger = logging.getLogger(__name__)


def _bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    return authorization.split(" ", 1)[1].strip()


async def get_current_user(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> User:
    token_value = _bearer_token(authorization)
    now = datetime.now(timezone.utc)
    stmt: Select[tuple[AuthToken]] = select(AuthToken).where(
        AuthToken.token == token_value,
        AuthToken.is_active.is_(True),
        AuthToken.expires_at > now,
    )
    result = await session.execute(stmt)
    auth_token = result.scalar_one_or_none()
    if auth_token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    user = await session.get(User, auth_token.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


async def require_ingest_secret(
    authorization: str | None = Header(default=None),
    settings: AppSettings = Depends(get_app_settings),
) -> None:
    """Accept ``Authorization: Bearer <POLYGON_API_KEY>`` for the manual ingest trigger."""

    token_value = _bearer_token(authorization)
    expected = settings.polygon_api_key
    if not expected or not hmac.compare_digest(token_value.encode(), expected.encode()):
        logger.warning("Rejected market data trigger with an invalid secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


__all__ = ["get_current_user", "require_ingest_secret"]
