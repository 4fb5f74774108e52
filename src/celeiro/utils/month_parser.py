"""Month parsing utilities."""

from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

RELATIVE_MONTHS = {"last month": -1, "this month": 0, "next month": 1}


def parse_month(value: str, today: Optional[date] = None) -> tuple[int, int]:
    """Parse a month reference into (month, year).

    Supports relative names ("last month", "this month", "next month") and
    anything dateutil understands, such as "2024-03" or "March 2024".

    Args:
        value: Month reference
        today: Reference date for relative names (default: date.today())

    Returns:
        Tuple of (month, year)

    Raises:
        ValueError: If the value cannot be parsed
    """
    today = today or date.today()
    text = value.strip().lower()

    if text in RELATIVE_MONTHS:
        target = today.replace(day=1) + relativedelta(months=RELATIVE_MONTHS[text])
        return target.month, target.year

    default = datetime(today.year, today.month, 1)
    try:
        parsed = date_parser.parse(text, default=default)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse month '{value}': {e}") from e
    return parsed.month, parsed.year
