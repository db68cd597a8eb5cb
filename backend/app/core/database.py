import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings
from app.core.logging_config import get_logger

logger = get_logger("database")


def ensure_sqlite_file_writable(db_url: str) -> None:
    """Create the directory of a file-backed SQLite database and fail fast if it cannot be written."""
    if not db_url.startswith("sqlite:///"):
        return
    db_path = db_url[len("sqlite:///"):]
    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
        if not os.access(db_dir, os.W_OK):
            raise PermissionError(f"Database directory is not writable: {db_dir}")
    if os.path.exists(db_path) and not os.access(db_path, os.W_OK):
        raise PermissionError(f"Database file is not writable: {db_path}")


ensure_sqlite_file_writable(settings.DATABASE_URL)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={
        "check_same_thread": False,
        "timeout": 20.0,  # seconds to wait on a locked database
    },
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


@event.listens_for(engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves FK enforcement off per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
