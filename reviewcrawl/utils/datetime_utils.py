import logging
from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return the current time as a UTC-naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_long_date(value: Optional[str]) -> Optional[date]:
    """Parse dates written like '2 September 2022'. Returns None when unparseable."""
    if value is None or not value.strip():
        return None
    try:
        return datetime.strptime(" ".join(value.split()), "%d %B %Y").date()
    except ValueError:
        logging.debug("Could not parse date string: %s", value)
        return None
