import os
_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret
os.environ.setdefault("ENV", "test")

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

PROJECT_ROOT = Path(__file__).resolve().parents[2]
TEST_DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{PROJECT_ROOT / 'test_invoiceops.db'}")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from app import database
import app.models  # noqa: E402,F401
from app.database import SessionLocal


def _is_sqlite(database_url: str) -> bool:
    return make_url(database_url).drivername.startswith("sqlite")


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _reset_sqlite_file(database_url: str) -> None:
    path = make_url(database_url).database
    if path and path != ":memory:":
        if database.engine is not None:
            database.engine.dispose()
        Path(path).unlink(missing_ok=True)


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    if _is_sqlite(TEST_DATABASE_URL):
        _reset_sqlite_file(TEST_DATABASE_URL)
    else:
        _ensure_database_exists(TEST_DATABASE_URL)

    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(cfg, "head")

    database.configure_database()


def _empty_all_tables() -> None:
    with database.engine.begin() as conn:
        if _is_sqlite(TEST_DATABASE_URL):
            # claimed entries may only be released, never deleted
            conn.execute(text("UPDATE time_entries SET invoice_id = NULL WHERE invoice_id IS NOT NULL"))
            for table in reversed(database.Base.metadata.sorted_tables):
                conn.execute(table.delete())
            return

        rows = conn.execute(
            text(
                """
                SELECT tablename
                FROM pg_tables
                WHERE schemaname = 'public'
                  AND tablename <> 'alembic_version'
                """
            )
        ).fetchall()

        table_names = [row[0] for row in rows]
        if table_names:
            quoted = ", ".join([f'"public"."{name}"' for name in table_names])
            conn.execute(text(f"TRUNCATE TABLE {quoted} RESTART IDENTITY CASCADE"))


@pytest.fixture(scope="function", autouse=True)
def _truncate_tables_between_tests():
    _empty_all_tables()
    yield
    _empty_all_tables()


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
