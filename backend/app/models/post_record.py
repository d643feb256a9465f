"""SQLAlchemy ORM model for the posts table."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base

VALID_POST_TYPES = ("image", "video", "text")


class PostRecord(Base):
    """A user's entry into a trend. Soft-deleted rows never score."""

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_trend_id_is_deleted", "trend_id", "is_deleted"),
        Index("ix_posts_user_id", "user_id"),
        CheckConstraint(
            f"post_type IN ({', '.join(repr(t) for t in VALID_POST_TYPES)})",
            name="ck_posts_post_type",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    trend_id: Mapped[int] = mapped_column(ForeignKey("trends.id"), nullable=False)
    post_type: Mapped[str] = mapped_column(String(10), nullable=False)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    text_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
