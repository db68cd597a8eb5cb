"""
Bring the database schema up to date. Run from backend dir:
  python -m scripts.init_db
"""
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(BACKEND_DIR))

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine

from app.core.config import settings
from app.core.database import ensure_sqlite_file_writable


def current_revision():
    engine = create_engine(settings.DATABASE_URL)
    try:
        with engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()


def init_db() -> None:
    """Create the database directory if needed and upgrade the schema to head."""
    ensure_sqlite_file_writable(settings.DATABASE_URL)

    cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    head = ScriptDirectory.from_config(cfg).get_current_head()
    before = current_revision()
    if before == head:
        print(f"Database already at {head}")
        return

    print(f"Migrating database {before or '<empty>'} -> {head}")
    command.upgrade(cfg, "head")
    print(f"Database at {settings.DATABASE_PATH} is now at {head}")


if __name__ == "__main__":
    init_db()
