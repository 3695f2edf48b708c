from typing import Iterator

from sqlalchemy.orm import Session

from ignis.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """One store session per request, closed after the response is built."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
