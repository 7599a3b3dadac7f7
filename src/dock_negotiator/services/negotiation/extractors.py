"""Pull times, dock numbers, names and day offsets out of free-form messages."""

from __future__ import annotations

import re
from typing import Optional

from ...models.domain import MINUTES_PER_HOUR, TimeOfDay
from ..time_normalizer import parse_time_to_minutes

_MERIDIEM = r"(a\.?\s?m\.?|p\.?\s?m\.?)"

_TIME_PATTERNS = (
    re.compile(rf"\b(\d{{1,2}}):(\d{{2}})\s*{_MERIDIEM}?", re.IGNORECASE),
    re.compile(rf"\b(\d{{1,2}})()\s*{_MERIDIEM}", re.IGNORECASE),
    re.compile(r"\b(?:around|about|at)\s+(\d{1,2})()()\b(?!:)", re.IGNORECASE),
    re.compile(r"\b(\d{1,2})()()\s*o'?clock", re.IGNORECASE),
)

_DOCK_PATTERNS = (
    re.compile(r"(?:dock|bay|door|talk)\s*(?:number|#|num)?\s*(\w+)", re.IGNORECASE),
    re.compile(r"(?:up|in|over)\s+to\s+(\d+)\b(?!\s*(?::|am|pm|a\.m|p\.m|o'clock))", re.IGNORECASE),
)

_NAME_PATTERNS = (
    re.compile(r"(?:this is|i'm|i am|my name is|name's)\s+(\w+)", re.IGNORECASE),
    re.compile(r"^(\w+)\s+(?:here|speaking)", re.IGNORECASE),
    re.compile(r"^hi,?\s+(\w+)\s+here", re.IGNORECASE),
)
_NON_NAMES = {"the", "a", "an", "this", "that", "here", "there", "calling"}

_DAY_AFTER = re.compile(r"\b(day\s+after\s+tomorrow|day\s+after\s+next|in\s+two\s+days)\b")
_TOMORROW = re.compile(r"\b(tomorrow|tmrw|tmr|next\s+day|next\s+morning)\b")
_NIGHT_CONTEXT = re.compile(r"\b(tonight|later|this\s+evening)\b")
_EARLY_MORNING = re.compile(r"\b([1-5])\s*(am|a\.m\.?)|\bmidnight\b|\b12\s*(am|a\.m\.?)")
_MORNING = re.compile(r"\b(in\s+the\s+morning|first\s+thing|early\s+morning)\b")


def extract_time_from_message(message: str) -> Optional[TimeOfDay]:
    """Find the first time mentioned in a message.

    Hours 1-6 without a meridiem are read as afternoon business hours
    ("around 3" is 15:00) unless zero-padded ("05:30" stays 05:30). Falls
    back to parsing the whole message as a spoken time.
    """
    for pattern in _TIME_PATTERNS:
        match = pattern.search(message)
        if not match:
            continue
        hour = int(match.group(1))
        minute = int(match.group(2)) if match.group(2) else 0
        meridiem = (match.group(3) or "").lower()[:1]
        if meridiem == "p" and hour != 12:
            hour += 12
        elif meridiem == "a" and hour == 12:
            hour = 0
        elif not meridiem and 1 <= hour <= 6 and not match.group(1).startswith("0"):
            hour += 12
        if hour < 24 and minute < MINUTES_PER_HOUR:
            return hour * MINUTES_PER_HOUR + minute
    cleaned = re.sub(r"[?!.,]+$", "", message.strip())
    cleaned = re.sub(r"^(?:how about|what about|we can do|can you do|maybe|around|at)\s+", "", cleaned, flags=re.IGNORECASE)
    return parse_time_to_minutes(cleaned)


def extract_dock_from_message(message: str) -> Optional[str]:
    for pattern in _DOCK_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None


def extract_name_from_message(message: str) -> Optional[str]:
    for pattern in _NAME_PATTERNS:
        match = pattern.search(message.strip())
        if match and match.group(1).lower() not in _NON_NAMES:
            return match.group(1)
    return None


def detect_day_offset(
    message: str,
    current_minutes: Optional[TimeOfDay] = None,
    offered_minutes: Optional[TimeOfDay] = None,
) -> int:
    """Days after today implied by the message: 2, 1 or 0.

    "Tonight at 2 AM" is after midnight and so counts as tomorrow. "In the
    morning" only means tomorrow when it is already afternoon and the offered
    time is a morning time.
    """
    lowered = message.lower()
    if _DAY_AFTER.search(lowered):
        return 2
    if _TOMORROW.search(lowered):
        return 1
    if _NIGHT_CONTEXT.search(lowered) and _EARLY_MORNING.search(lowered):
        return 1
    if _MORNING.search(lowered) and current_minutes is not None and offered_minutes is not None:
        if current_minutes >= 12 * MINUTES_PER_HOUR and offered_minutes < 12 * MINUTES_PER_HOUR:
            return 1
    return 0
