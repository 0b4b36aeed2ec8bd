import sqlite3

from sqlmodel import create_engine

import run_migrations
from blogapi.database import create_db_and_tables


def test_migrations_create_schema(tmp_path):
    db_path = tmp_path / 'migrated.db'
    applied = run_migrations.run(db_path=db_path)
    assert applied == ['001_create_tables.sql']
    conn = sqlite3.connect(db_path)
    try:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    finally:
        conn.close()
    assert {'users', 'posts', 'comments'} <= tables


def test_migrations_are_repeatable(tmp_path):
    db_path = tmp_path / 'again.db'
    run_migrations.run(db_path=db_path)
    assert run_migrations.run(db_path=db_path) == ['001_create_tables.sql']


def _foreign_keys(conn, table):
    # (referenced table, from column, on_delete) per foreign key
    return sorted((row[2], row[3], row[6]) for row in conn.execute(f"PRAGMA foreign_key_list({table})"))


def test_migrated_foreign_keys_match_models(tmp_path):
    migrated = tmp_path / 'migrated.db'
    run_migrations.run(db_path=migrated)
    orm_db = tmp_path / 'orm.db'
    engine = create_engine(f"sqlite:///{orm_db}")
    create_db_and_tables(engine)
    engine.dispose()
    a = sqlite3.connect(migrated)
    b = sqlite3.connect(orm_db)
    try:
        for table in ('posts', 'comments'):
            assert _foreign_keys(a, table) == _foreign_keys(b, table)
    finally:
        a.close()
        b.close()
