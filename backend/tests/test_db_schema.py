from __future__ import annotations

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from restful_api.core.base import Base
from restful_api.core.db import create_db_engine


def test_expected_tables_exist(engine: Engine):
    tables = set(inspect(engine).get_table_names())
    assert {"authors", "posts", "request_logs"} <= tables


def test_migration_matches_model_columns(engine: Engine):
    insp = inspect(engine)
    for table in Base.metadata.sorted_tables:
        migrated = {c["name"] for c in insp.get_columns(table.name)}
        assert migrated == set(table.columns.keys()), table.name


def test_uuid_columns_are_unique(engine: Engine):
    insp = inspect(engine)
    for table, column in (("authors", "author_uuid"), ("posts", "post_uuid")):
        unique = [u["column_names"] for u in insp.get_unique_constraints(table)]
        assert [column] in unique


def test_post_author_fk_cascades_on_delete(engine: Engine):
    (fk,) = inspect(engine).get_foreign_keys("posts")
    assert fk["referred_table"] == "authors"
    assert fk["options"].get("ondelete") == "CASCADE"


def test_sqlite_engines_enforce_foreign_keys(engine: Engine, tmp_path):
    with engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

    other = create_db_engine(f"sqlite+pysqlite:///{tmp_path / 'fk.db'}")
    try:
        with other.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
    finally:
        other.dispose()
