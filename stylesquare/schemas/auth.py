from __future__ import annotations

from pydantic import BaseModel, Field


class AuthUserOut(BaseModel):
    user_id: str
    nickname: str
    avatar: str | None = None


class LoginIn(BaseModel):
    phone: str = Field(min_length=3, max_length=32)
    nickname: str | None = Field(default=None, max_length=255)


class LoginOut(BaseModel):
    user: AuthUserOut
    access_token: str
    token_type: str = "bearer"
    created: bool = False
