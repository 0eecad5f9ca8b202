"""Snooze durations such as ``1h``, ``2d``, ``1w`` or ``3m``."""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from dblebox.exceptions import InvalidDurationError
from dblebox.models import format_timestamp, utcnow

DEFAULT_SNOOZE = "1d"

# A month is a fixed 30 days.
_UNIT_MS: dict[str, int] = {
    "h": 3_600_000,
    "d": 86_400_000,
    "w": 604_800_000,
    "m": 2_592_000_000,
}

_DURATION_RE = re.compile(r"([0-9]+)([hdwm])")


def parse_duration(text: str) -> int:
    """Return the duration in milliseconds.

    Raises:
        InvalidDurationError: If ``text`` is not digits followed by h, d, w or m.
    """
    match = _DURATION_RE.fullmatch(text)
    if not match:
        raise InvalidDurationError("Invalid duration format. Use: 1h, 1d, 1w, 1m")
    count, unit = match.groups()
    return int(count) * _UNIT_MS[unit]


def snooze_until(text: str, now: datetime | None = None) -> str:
    """Absolute timestamp ``text`` from ``now``.

    Raises:
        InvalidDurationError: If ``text`` is malformed or lands past year 9999.
    """
    ms = parse_duration(text)
    try:
        return format_timestamp((now or utcnow()) + timedelta(milliseconds=ms))
    except OverflowError as e:
        raise InvalidDurationError(f"Duration too long: {text}") from e
