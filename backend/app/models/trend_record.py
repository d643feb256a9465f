"""SQLAlchemy ORM model for the trends table."""

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


class TrendRecord(Base):
    """A time-boxed, hashtag-scoped competition.

    Posts reference a trend but are not owned by it: ending or deactivating
    a trend leaves its posts (and its leaderboard) intact.
    """

    __tablename__ = "trends"
    __table_args__ = (
        Index("ix_trends_hashtag", "hashtag"),
        Index("ix_trends_is_active", "is_active"),
        CheckConstraint("start_date <= end_date", name="ck_trends_window"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    hashtag: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="1",
    )
    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
