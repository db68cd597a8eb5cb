from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.database import SessionLocal
from app.core.exceptions import StorageError
from app.core.logging_config import get_logger

logger = get_logger("db_transaction")


@contextmanager
def db_transaction(db: Session = None):
    """
    Scope a unit of work: commit on normal exit, roll back on any exception.

    SQLAlchemy failures (constraint violations, lost connections, lock
    timeouts) are re-raised as StorageError; domain errors raised inside the
    block propagate unchanged after the rollback.
    """
    if db is None:
        db = SessionLocal()
        should_close = True
    else:
        should_close = False
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Transaction rolled back: {str(e)}", exc_info=True)
        raise StorageError(detail=str(e)) from e
    except Exception as e:
        db.rollback()
        logger.info(f"Transaction rolled back: {e!r}")
        raise
    finally:
        if should_close:
            db.close()


def safe_commit(db: Session, operation_name: str = "operation") -> bool:
    try:
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{operation_name} failed: {str(e)}", exc_info=True)
        return False
