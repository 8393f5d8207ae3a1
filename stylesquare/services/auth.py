from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import Depends, Header, HTTPException, WebSocket, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.core.config import settings
from stylesquare.db.session import get_db
from stylesquare.services import directory


bearer = HTTPBearer(auto_error=False)


@dataclass(slots=True)
class AuthUser:
    user_id: str
    nickname: str
    avatar: str | None = None


def create_access_token(user_id: str, *, nickname: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_exp_minutes),
    }
    if nickname:
        payload["nickname"] = nickname
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode_token(token: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "algorithms": [settings.jwt_algorithm],
        "leeway": settings.jwt_exp_leeway_seconds,
    }
    if settings.jwt_issuer:
        kwargs["issuer"] = settings.jwt_issuer

    try:
        payload = jwt.decode(token, settings.jwt_secret, **kwargs)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    return payload


def _parse_payload(payload: dict[str, Any]) -> AuthUser:
    user_id = str(payload.get("sub") or payload.get("user_id") or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid sub claim")

    nickname = str(payload.get("nickname") or user_id).strip()
    avatar = str(payload.get("avatar") or "").strip() or None
    return AuthUser(user_id=user_id, nickname=nickname, avatar=avatar)


async def _resolve(db: AsyncSession, user: AuthUser) -> AuthUser:
    # the directory entry wins over token claims for display data
    row = await directory.ensure_user(db, user.user_id, nickname=user.nickname)
    return AuthUser(user_id=row.user_id, nickname=row.nickname, avatar=row.avatar_url or user.avatar)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_user_nickname: str | None = Header(default=None, alias="X-User-Nickname"),
) -> AuthUser:
    if credentials is not None:
        payload = _decode_token(credentials.credentials)
        return await _resolve(db, _parse_payload(payload))

    if settings.allow_header_identity and (x_user_id or "").strip():
        user_id = x_user_id.strip()
        return await _resolve(db, AuthUser(user_id=user_id, nickname=(x_user_nickname or "").strip() or user_id))

    raise HTTPException(status_code=401, detail="Missing bearer token or X-User-Id header")


async def get_current_user_from_ws(websocket: WebSocket, db: AsyncSession) -> AuthUser:
    token = websocket.query_params.get("token")
    if not token:
        raise HTTPException(status_code=401, detail="Missing token")

    payload = _decode_token(token)
    return await _resolve(db, _parse_payload(payload))
