from __future__ import annotations

from pydantic import BaseModel, Field


class HistoryCreate(BaseModel):
    original_image_uri: str = Field(min_length=1)
    result_image_uri: str = Field(min_length=1)
    template_id: str = Field(min_length=1, max_length=64)
    template_name: str = Field(min_length=1, max_length=255)
    allow_square_publish: bool = True


class HistoryPermissionPatch(BaseModel):
    allow_square_publish: bool


class HistoryItemOut(BaseModel):
    id: str
    user_id: str
    original_image_uri: str
    result_image_uri: str
    template_id: str
    template_name: str
    allow_square_publish: bool
    is_published_to_square: bool
    created_at: str


class VisibleHistoryOut(BaseModel):
    user_id: str
    visible: bool
    items: list[HistoryItemOut]
