"""API dependencies."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session

from restful_api.core.db import get_sessionmaker


def get_db_session() -> Generator[Session, None, None]:
    """Provide a database session for request scope.

    Uncommitted work is rolled back when the request ends.
    """
    session: Session = get_sessionmaker()()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
