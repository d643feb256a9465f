"""SQLAlchemy declarative base shared by the engagement store models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for users, trends, posts, likes and comments."""
