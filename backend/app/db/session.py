"""Database session factory."""

from collections.abc import Generator

from sqlalchemy.orm import Session, sessionmaker

from backend.app.db.engine import engine

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request.

    Every leaderboard request reads through its own session, so concurrent
    requests never share ORM state.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
