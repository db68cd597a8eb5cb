"""
Reusable validators for common validation patterns
"""
from datetime import datetime, timezone
from typing import Optional
from app.core.exceptions import ValidationError
from app.core.logging_config import get_logger

logger = get_logger("validators")


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to naive UTC.

    All timestamps are stored and compared as naive UTC (SQLite drops tzinfo
    on the way in), so aware values from clients are converted first.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def validate_date_window(
    start: Optional[datetime],
    end: Optional[datetime],
    start_label: str = "start_date",
    end_label: str = "end_date",
) -> None:
    """
    Validate that a start/end pair is ordered.

    Raises:
        ValidationError: If both are set and end is before start
    """
    if start is None or end is None:
        return
    if to_naive_utc(end) < to_naive_utc(start):
        logger.info(f"Rejected date window: {start_label}={start} {end_label}={end}")
        raise ValidationError(f"{end_label} must not be before {start_label}")
