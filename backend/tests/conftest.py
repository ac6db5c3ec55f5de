from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Generator

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


ROOT = Path(__file__).resolve().parents[2]

# Ensure `backend/restful_api` is importable as top-level `restful_api` for tests.
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from restful_api.core.base import Base  # noqa: E402
from restful_api.core.db import enable_sqlite_foreign_keys  # noqa: E402
import restful_api.models  # noqa: E402,F401


def _alembic_config(db_url: str) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


@pytest.fixture(scope="session")
def engine(tmp_path_factory: pytest.TempPathFactory) -> Engine:
    """SQLite database migrated to head once per test session."""
    path = tmp_path_factory.mktemp("db") / "restful_api.db"
    url = f"sqlite+pysqlite:///{path}"
    command.upgrade(_alembic_config(url), "head")
    return enable_sqlite_foreign_keys(create_engine(url, future=True, connect_args={"check_same_thread": False}))


@pytest.fixture(scope="session")
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False)


@pytest.fixture(autouse=True)
def _clean_tables(engine: Engine) -> Generator[None, None, None]:
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """DB session per test; uncommitted work is rolled back."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def seed(session_factory: sessionmaker[Session]) -> Callable[..., object]:
    """Persist one model in its own short-lived session and return it detached."""

    def _seed(model: object) -> object:
        with session_factory(expire_on_commit=False) as s:
            s.add(model)
            s.commit()
            s.refresh(model)
        return model

    return _seed
