"""This module defines the timestamp type used by every persisted model."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator


def _as_utc(value: datetime) -> datetime:
    """Interprets naive datetimes as UTC and converts aware ones to UTC.

    Some backends drop the offset on the way out of the database, so values
    read back are normalized before they are compared with fresh timestamps.

    Args:
        value: The datetime to normalize.

    Returns:
        A timezone-aware UTC datetime.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]
