from __future__ import annotations

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stylesquare.db.base import Base
from stylesquare.models.common import TimestampMixin


class OutfitChangeHistory(TimestampMixin, Base):
    __tablename__ = "outfit_change_history"
    __table_args__ = (Index("ix_outfit_change_history_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    original_image_uri: Mapped[str] = mapped_column(Text, nullable=False)
    result_image_uri: Mapped[str] = mapped_column(Text, nullable=False)
    template_id: Mapped[str] = mapped_column(String(64), nullable=False)
    template_name: Mapped[str] = mapped_column(String(255), nullable=False)
    allow_square_publish: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_published_to_square: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
