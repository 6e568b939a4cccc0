"""Date parsing and date arithmetic utilities."""

from datetime import date, datetime
import re


# Month name mappings (handle abbreviations and full names)
MONTH_MAP = {
    "JAN": 1,
    "JANUARY": 1,
    "FEB": 2,
    "FEBRUARY": 2,
    "MAR": 3,
    "MARCH": 3,
    "APR": 4,
    "APRIL": 4,
    "MAY": 5,
    "JUN": 6,
    "JUNE": 6,
    "JUL": 7,
    "JULY": 7,
    "AUG": 8,
    "AUGUST": 8,
    "SEP": 9,
    "SEPT": 9,
    "SEPTEMBER": 9,
    "OCT": 10,
    "OCTOBER": 10,
    "NOV": 11,
    "NOVEMBER": 11,
    "DEC": 12,
    "DECEMBER": 12,
}

DAYS_PER_YEAR = 365.25


def _build_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date_string(date_str: str | None) -> date | None:
    """
    Parse a date string into a `date`.
    Returns None if the date cannot be parsed.

    Handles formats like:
    - "1839-08-29" (ISO, optionally with a time part)
    - "25 NOV 1954"
    - "1698"
    - "ABOUT 1905"
    - "JAN 1905"
    - "(01-27-1920)"
    - "(02 May1838)"
    - "(04 05 1911)"
    - "(05/15/1923)"
    - "(SEPT. 17,1910)"
    - "(Oct.12,1929)"
    - "(May, 1837)"
    - "(1789?)"
    - "(About:1746-00-00)"
    - "(08 March 1893)"
    - "(April 17, 1850)"

    Partial dates resolve to the first day of the month or year.
    """
    if not date_str:
        return None

    # Clean up the string
    s = date_str.strip()
    # Remove parentheses
    s = s.strip("()")
    # Remove trailing question marks
    s = s.rstrip("?")
    # Remove qualifiers (ABT, ABOUT, BEF, AFT, EST, CAL, AROUND, etc.) - with optional colon
    s = re.sub(
        r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|FROM|TO|BET\.?|AND|CIRCA|CA\.?|AROUND):?\s*",
        "",
        s,
        flags=re.IGNORECASE,
    )
    s = s.strip()

    if not s:
        return None

    # Pattern 0: ISO format "1839-08-29", "1746-00-00" or "1839-08-29T00:00:00Z"
    match = re.match(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ][\d:.]+(?:Z|[+-]\d{2}:?\d{2})?)?$", s)
    if match:
        year = int(match.group(1))
        # Handle 00 month/day as defaults
        month = int(match.group(2)) or 1
        day = int(match.group(3)) or 1
        return _build_date(year, month, day)

    # Pattern 1: "25 NOV 1954", "08 March 1893" or "11 Aug. 1968" (day month year)
    match = re.match(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(2).upper())
        if month:
            return _build_date(int(match.group(3)), month, int(match.group(1)))

    # Pattern 2: "NOV 1954" or "November 1954" or "May, 1837" (month year, optional comma)
    match = re.match(r"^([A-Za-z]+)\.?,?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        if month:
            return _build_date(int(match.group(2)), month, 1)

    # Pattern 3: "1698" (year only)
    match = re.match(r"^(\d{4})$", s)
    if match:
        return _build_date(int(match.group(1)), 1, 1)

    # Pattern 4: "01-27-1920", "01/27/1920" or "04 05 1911" (month day year)
    match = re.match(r"^(\d{1,2})[-/\s]+(\d{1,2})[-/\s]+(\d{4})$", s)
    if match:
        return _build_date(int(match.group(3)), int(match.group(1)), int(match.group(2)))

    # Pattern 5: "April 17, 1850" or "SEPT. 17,1910" or "Oct.12,1929" (month day, year)
    match = re.match(r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        if month:
            return _build_date(int(match.group(3)), month, int(match.group(2)))

    return None


def to_date(value: date | datetime | str | None) -> date | None:
    """
    Coerce a payload value into a `date`.

    Raises ValueError for a non-empty string that cannot be parsed, so callers
    can report it against the offending field.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        if not value.strip():
            return None
        parsed = parse_date_string(value)
        if parsed is None:
            raise ValueError(f"Unrecognized date: {value!r}")
        return parsed
    raise TypeError(f"Cannot interpret {type(value).__name__} as a date")


def format_date(value: date | None) -> str | None:
    """Render a date as ISO text (YYYY-MM-DD), the storage format."""
    return value.isoformat() if value else None


def days_between(start: date, end: date) -> int:
    """Signed number of days from `start` to `end`."""
    return (end - start).days


def years_between(start: date, end: date) -> float:
    """Signed fractional years from `start` to `end`, using 365.25-day years."""
    return days_between(start, end) / DAYS_PER_YEAR
