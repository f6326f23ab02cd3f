"""
Chat export timestamp normalization.
"""
import re
from datetime import datetime
from typing import Callable, Optional, Pattern, Tuple
import logging

logger = logging.getLogger(__name__)

_TIME = r"(?P<hour>\d{1,2}):(?P<minute>\d{2})"
_SECONDS = r":(?P<second>\d{2})"
_MERIDIEM = r"(?:\s*(?P<meridiem>[AaPp]\.?\s?[Mm]\.?))?"
_DMY_YEAR = r"(?P<year>\d{4}|\d{2})"

# Tried in order; each must match the whole token.
TIMESTAMP_GRAMMARS: Tuple[Tuple[str, Pattern], ...] = (
    ("ymd_slash", re.compile(
        rf"(?P<year>\d{{4}})/(?P<month>\d{{1,2}})/(?P<day>\d{{1,2}}),\s*{_TIME}"
    )),
    ("dmy_slash", re.compile(
        rf"(?P<day>\d{{1,2}})/(?P<month>\d{{1,2}})/{_DMY_YEAR},\s*{_TIME}"
    )),
    ("dmy_bracketed", re.compile(
        rf"\[?(?P<day>\d{{1,2}})/(?P<month>\d{{1,2}})/{_DMY_YEAR},?\s+{_TIME}{_SECONDS}\]?"
    )),
    ("dmy_dotted", re.compile(
        rf"(?P<day>\d{{1,2}})\.(?P<month>\d{{1,2}})\.(?P<year>\d{{4}}),\s*{_TIME}"
    )),
    ("dmy_dashed", re.compile(
        rf"(?P<day>\d{{1,2}})-(?P<month>\d{{1,2}})-(?P<year>\d{{4}}),\s*{_TIME}"
    )),
    ("dmy_generic", re.compile(
        rf"\[?(?P<day>\d{{1,2}})(?P<sep>[/.\-])(?P<month>\d{{1,2}})(?P=sep){_DMY_YEAR},?\s+"
        rf"{_TIME}(?:{_SECONDS})?{_MERIDIEM}\]?"
    )),
)


def _expand_year(year: str) -> int:
    if len(year) == 2:
        return int(f"20{year}")
    return int(year)


def _to_24_hour(hour: int, meridiem: Optional[str]) -> int:
    if not meridiem:
        return hour
    marker = re.sub(r'[^ap]', '', meridiem.lower())
    if not 1 <= hour <= 12:
        raise ValueError(f"Hour {hour} is not valid on a 12-hour clock")
    if marker == 'p':
        return hour if hour == 12 else hour + 12
    return 0 if hour == 12 else hour


def parse_timestamp(raw: str) -> Optional[datetime]:
    """
    Parse a chat timestamp with the first grammar that matches.

    Two-digit years are taken as 20YY. A trailing AM/PM marker is converted
    to 24-hour time.

    Args:
        raw: Timestamp token as it appears in the export

    Returns:
        Parsed datetime, or None if no grammar matches
    """
    if not raw:
        return None

    cleaned = raw.strip()
    for name, grammar in TIMESTAMP_GRAMMARS:
        match = grammar.fullmatch(cleaned)
        if not match:
            continue

        fields = match.groupdict()
        try:
            return datetime(
                _expand_year(fields['year']),
                int(fields['month']),
                int(fields['day']),
                _to_24_hour(int(fields['hour']), fields.get('meridiem')),
                int(fields['minute']),
                int(fields.get('second') or 0),
            )
        except ValueError as e:
            logger.debug(f"Grammar {name} matched {raw!r} but values are invalid: {e}")
            continue

    return None


def normalize_timestamp(raw: str, now: Optional[Callable[[], datetime]] = None) -> datetime:
    """
    Parse a chat timestamp, falling back to the processing time.

    A record with useful payment data is kept even when its date cannot be
    read, so this never fails.

    Args:
        raw: Timestamp token
        now: Clock used for the fallback (default: ``datetime.now``)

    Returns:
        Parsed or fallback datetime
    """
    parsed = parse_timestamp(raw)
    if parsed is not None:
        return parsed

    logger.debug(f"Could not parse timestamp {raw!r}, using processing time")
    return (now or datetime.now)()
