"""SQLAlchemy ORM model for the comments table."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base


class CommentRecord(Base):
    """A comment on a post, or a one-level-deep reply to one."""

    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_post_id_is_deleted", "post_id", "is_deleted"),
        Index("ix_comments_parent_comment_id", "parent_comment_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id"), nullable=False)
    parent_comment_id: Mapped[int | None] = mapped_column(
        ForeignKey("comments.id"), nullable=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    # set on edit; None means never edited
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
