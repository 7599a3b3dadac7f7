"""Time parsing and rendering helpers.

Every time is handled internally as minutes since midnight (``TimeOfDay``).
Parsers return ``None`` for anything they cannot read; callers must treat that
as a hard stop rather than defaulting to midnight.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from ..models.domain import MINUTES_PER_DAY, MINUTES_PER_HOUR, TimeOfDay

_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})$")
_TIME_12H = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\.?$")
_MILITARY = re.compile(r"^(\d{3,4})(?:\s*(?:hours|hrs|h))?$")

_ONES = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    "thirteen": 13, "fourteen": 14, "fifteen": 15, "sixteen": 16, "seventeen": 17,
    "eighteen": 18, "nineteen": 19,
}
_TENS = {"twenty": 20, "thirty": 30, "forty": 40, "fifty": 50}

_MERIDIEM_PHRASES = (
    ("in the morning", "am"),
    ("in the afternoon", "pm"),
    ("in the evening", "pm"),
    ("at night", "pm"),
    ("a.m.", "am"),
    ("p.m.", "pm"),
    ("a.m", "am"),
    ("p.m", "pm"),
)

# Spoken hours without a meridiem are read in business hours: "two thirty" is 2:30 PM.
_AFTERNOON_HOURS = range(1, 7)


def _number_from_tokens(tokens: Sequence[str]) -> Optional[int]:
    """Read 0-59 from digits or number words ("forty five", "oh five", "twelve")."""

    if not tokens:
        return None
    if len(tokens) == 1:
        token = tokens[0]
        if token.isdigit():
            return int(token)
        if token in _ONES:
            return _ONES[token]
        if token in _TENS:
            return _TENS[token]
        return None
    if len(tokens) == 2:
        first, second = tokens
        if first in ("oh", "o", "zero") and second in _ONES and 0 < _ONES[second] < 10:
            return _ONES[second]
        if first in _TENS and second in _ONES and 0 < _ONES[second] < 10:
            return _TENS[first] + _ONES[second]
    return None


def _apply_meridiem(hour: int, minute: int, meridiem: Optional[str], *, spoken: bool) -> Optional[int]:
    if not 0 <= minute < MINUTES_PER_HOUR:
        return None
    if meridiem is not None:
        if not 1 <= hour <= 12:
            return None
        if meridiem == "pm" and hour != 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    elif spoken and hour in _AFTERNOON_HOURS:
        hour += 12
    if not 0 <= hour < 24:
        return None
    return hour * MINUTES_PER_HOUR + minute


def _split_meridiem(text: str) -> tuple[str, Optional[str]]:
    for phrase, meridiem in _MERIDIEM_PHRASES:
        if text.endswith(phrase):
            return text[: -len(phrase)].strip(), meridiem
    match = re.search(r"\s*\b(am|pm)$", text)
    if match:
        return text[: match.start()].strip(), match.group(1)
    return text, None


def _parse_spoken(text: str) -> Optional[int]:
    if text in ("noon", "midday", "twelve noon"):
        return 12 * MINUTES_PER_HOUR
    if text in ("midnight", "twelve midnight"):
        return 0

    body, meridiem = _split_meridiem(text)
    body = body.replace("o'clock", " ").replace("oclock", " ")
    body = re.sub(r"[-,]", " ", body)
    tokens = [token for token in body.split() if token not in ("minutes", "minute", "mins")]
    if not tokens:
        return None

    # "half past two", "quarter to three", "ten past four", "20 to 5"
    for joiner in ("past", "after", "to", "til", "till"):
        if joiner in tokens:
            index = tokens.index(joiner)
            head, tail = tokens[:index], tokens[index + 1 :]
            if head == ["half"]:
                offset = 30
            elif head in (["quarter"], ["a", "quarter"]):
                offset = 15
            else:
                offset = _number_from_tokens(head)
            hour = _number_from_tokens(tail)
            if offset is None or hour is None or not 0 < offset < MINUTES_PER_HOUR:
                return None
            base = _apply_meridiem(hour, 0, meridiem, spoken=True)
            if base is None:
                return None
            if joiner in ("past", "after"):
                return (base + offset) % MINUTES_PER_DAY
            return (base - offset) % MINUTES_PER_DAY

    hour = _number_from_tokens(tokens[:1])
    if hour is None:
        return None
    rest = tokens[1:]
    if not rest or rest == ["hundred"]:
        minute = 0
    else:
        minute = _number_from_tokens(rest)
        if minute is None:
            return None
    return _apply_meridiem(hour, minute, meridiem, spoken=True)


def parse_time_to_minutes(text: Optional[str]) -> Optional[TimeOfDay]:
    """Parse a time string into minutes since midnight.

    Accepts 24-hour ("14:00", "9:30"), 12-hour ("2:00 PM", "2pm", "2 p.m."),
    military ("1430") and loose spoken forms ("two thirty", "half past two",
    "quarter to three", "noon"). Returns ``None`` when the text is not a time.
    """
    if text is None:
        return None
    normalized = " ".join(str(text).lower().strip().split())
    if not normalized:
        return None

    match = _TIME_24H.match(normalized)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour < 24 and minute < MINUTES_PER_HOUR:
            return hour * MINUTES_PER_HOUR + minute
        return None

    match = _TIME_12H.match(normalized)
    if match:
        meridiem = "am" if match.group(3) == "a" else "pm"
        return _apply_meridiem(int(match.group(1)), int(match.group(2) or 0), meridiem, spoken=False)

    match = _MILITARY.match(normalized)
    if match:
        digits = match.group(1)
        return _apply_meridiem(int(digits[:-2]), int(digits[-2:]), None, spoken=False)

    return _parse_spoken(normalized)


def minutes_to_time(minutes: TimeOfDay) -> str:
    """Render minutes as a zero-padded 24-hour "HH:MM" string."""
    minutes = int(minutes) % MINUTES_PER_DAY
    return f"{minutes // MINUTES_PER_HOUR:02d}:{minutes % MINUTES_PER_HOUR:02d}"


def _twelve_hour_parts(minutes: TimeOfDay) -> tuple[int, int, str]:
    minutes = int(minutes) % MINUTES_PER_DAY
    hour24, minute = divmod(minutes, MINUTES_PER_HOUR)
    period = "PM" if hour24 >= 12 else "AM"
    hour12 = 12 if hour24 == 0 else hour24 - 12 if hour24 > 12 else hour24
    return hour12, minute, period


def minutes_to_time_12_hour(minutes: TimeOfDay) -> str:
    """Render minutes as "2:00 PM"."""
    hour12, minute, period = _twelve_hour_parts(minutes)
    return f"{hour12}:{minute:02d} {period}"


def format_time_for_speech(minutes: TimeOfDay) -> str:
    """Render minutes for speech; whole hours drop the ":00" ("2 PM", "2:30 PM")."""
    hour12, minute, period = _twelve_hour_parts(minutes)
    if minute == 0:
        return f"{hour12} {period}"
    return f"{hour12}:{minute:02d} {period}"


def format_time_with_day_offset(minutes: TimeOfDay, day_offset: int = 0) -> str:
    spoken = format_time_for_speech(minutes)
    if day_offset <= 0:
        return spoken
    if day_offset == 1:
        return f"Tomorrow at {spoken}"
    return f"In {day_offset} days at {spoken}"


def round_time_to_five_minutes(minutes: TimeOfDay) -> TimeOfDay:
    """Round up to the next 5-minute boundary (18:03 -> 18:05, 18:00 -> 18:00).

    The result is not wrapped at midnight so it is never earlier than the input.
    """
    return -(-int(minutes) // 5) * 5


def add_minutes_to_time(minutes: TimeOfDay, delta: int) -> TimeOfDay:
    """Add a delta and wrap modulo one day."""
    return (int(minutes) + int(delta)) % MINUTES_PER_DAY


def time_difference_minutes(from_minutes: TimeOfDay, to_minutes: TimeOfDay) -> int:
    return int(to_minutes) - int(from_minutes)


def format_minutes_to_human(minutes: int) -> str:
    """390 -> "6h 30m", 45 -> "45m"."""
    if minutes < 0:
        return "0m"
    hours, mins = divmod(int(minutes), MINUTES_PER_HOUR)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_minutes_for_speech(minutes: int) -> str:
    """390 -> "6 hours and 30 minutes"."""
    if minutes < 0:
        return "0 minutes"
    hours, mins = divmod(int(minutes), MINUTES_PER_HOUR)
    hour_str = "1 hour" if hours == 1 else f"{hours} hours"
    min_str = "1 minute" if mins == 1 else f"{mins} minutes"
    if hours == 0:
        return min_str
    if mins == 0:
        return hour_str
    return f"{hour_str} and {min_str}"
