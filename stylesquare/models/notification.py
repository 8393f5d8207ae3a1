from __future__ import annotations

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from stylesquare.db.base import Base
from stylesquare.models.common import TimestampMixin


class Notification(TimestampMixin, Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    from_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    from_nickname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    from_avatar: Mapped[str | None] = mapped_column(String(1200), nullable=True)
    target_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    target_preview: Mapped[str | None] = mapped_column(String(255), nullable=True)
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
    is_read: Mapped[bool] = mapped_column(default=False, nullable=False)
