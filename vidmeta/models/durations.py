"""Video duration parsing.

Durations arrive as clock strings ("12:34", "1:02:03"), ISO-8601 durations
("PT1H2M3S", "P1DT2H") or plain seconds. Whether a video is short is always
derived from the parsed total, never taken from a source flag.
"""

import re
from typing import Any

SHORT_MAX_SECONDS = 60

_ISO_DURATION_PATTERN = re.compile(
    r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$", re.IGNORECASE
)
_CLOCK_DURATION_PATTERN = re.compile(r"^(\d+):([0-5]?\d)(?::([0-5]?\d))?$")


def parse_duration_seconds(value: Any) -> int:
    """
    Parse a duration into total seconds.

    Args:
        value: Seconds as a number, a clock string ("12:34", "1:02:03") or an
            ISO-8601 duration ("PT1H2M3S")

    Returns:
        Total seconds, 0 when unparseable
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if not isinstance(value, str):
        return 0

    text = value.strip()

    match = _ISO_DURATION_PATTERN.match(text)
    if match and text.upper() not in ("P", "PT"):
        days, hours, minutes, seconds = match.groups()
        return (
            int(days or 0) * 86400
            + int(hours or 0) * 3600
            + int(minutes or 0) * 60
            + int(float(seconds or 0))
        )

    match = _CLOCK_DURATION_PATTERN.match(text)
    if match:
        first, second, third = match.groups()
        if third is None:
            return int(first) * 60 + int(second)
        return int(first) * 3600 + int(second) * 60 + int(third)

    return 0


def format_duration(total_seconds: int) -> str:
    """Render seconds as ``m:ss`` or ``h:mm:ss``."""
    total_seconds = max(int(total_seconds), 0)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def is_short_duration(total_seconds: int) -> bool:
    """A video is short when its total duration is at most 60 seconds."""
    return total_seconds <= SHORT_MAX_SECONDS
