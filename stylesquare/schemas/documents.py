from __future__ import annotations

from pydantic import BaseModel


class SquarePostsImport(BaseModel):
    # raw document text exactly as the client stored it
    document: str | None = None


class RelationshipsImport(BaseModel):
    friends: str | None = None
    following: str | None = None


class ImportOut(BaseModel):
    posts: int = 0
    friends: int = 0
    following: int = 0
