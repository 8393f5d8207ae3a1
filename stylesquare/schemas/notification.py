from __future__ import annotations

from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: int
    kind: str
    from_user_id: str | None = None
    from_nickname: str | None = None
    from_avatar: str | None = None
    target_id: str | None = None
    target_preview: str | None = None
    message: str
    is_read: bool
    created_at: str
