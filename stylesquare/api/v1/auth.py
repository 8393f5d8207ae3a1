from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stylesquare.db.session import get_db
from stylesquare.schemas.auth import AuthUserOut, LoginIn, LoginOut
from stylesquare.services import directory
from stylesquare.services.auth import AuthUser, create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginOut)
async def login(payload: LoginIn, db: AsyncSession = Depends(get_db)) -> LoginOut:
    user, created = await directory.register_by_phone(db, payload.phone, nickname=payload.nickname)
    return LoginOut(
        user=AuthUserOut(user_id=user.user_id, nickname=user.nickname, avatar=user.avatar_url),
        access_token=create_access_token(user.user_id, nickname=user.nickname),
        created=created,
    )


@router.get("/me", response_model=AuthUserOut)
async def me(current_user: AuthUser = Depends(get_current_user)) -> AuthUserOut:
    return AuthUserOut(
        user_id=current_user.user_id,
        nickname=current_user.nickname,
        avatar=current_user.avatar,
    )
