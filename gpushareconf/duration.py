"""Durations in nanoseconds, written and read in the compact "1h2m3.5s" form."""

from __future__ import annotations

import re

from gpushareconf.common import ConfigError

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

_MICRO_SIGN = "\u00b5"
_UNITS = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    _MICRO_SIGN + "s": MICROSECOND,
    "\u03bcs": MICROSECOND,
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}
_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")
_LIMIT = 1 << 63
_MAX_FRACTION_DIGITS = 18


def parse_duration(text: str) -> int:
    """Parse a duration such as "300ms" or "-1.5h" into nanoseconds."""
    if not isinstance(text, str):
        raise ConfigError(f"invalid duration {text!r}")
    rest = text
    negative = False
    if rest[:1] in ("-", "+"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return 0
    if not rest:
        raise ConfigError(f'invalid duration "{text}"')

    total = 0
    while rest:
        match = _COMPONENT.match(rest)
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise ConfigError(f'invalid duration "{text}"')
        if not unit:
            raise ConfigError(f'missing unit in duration "{text}"')
        scale = _UNITS.get(unit)
        if scale is None:
            raise ConfigError(f'unknown unit "{unit}" in duration "{text}"')
        rest = rest[match.end():]

        value = int(whole) if whole else 0
        if value > _LIMIT // scale:
            raise ConfigError(f'invalid duration "{text}"')
        value *= scale
        if fraction:
            digits = fraction[:_MAX_FRACTION_DIGITS]
            value += int(int(digits) * (scale / 10 ** len(digits)))
            if value > _LIMIT:
                raise ConfigError(f'invalid duration "{text}"')
        total += value
        if total > _LIMIT:
            raise ConfigError(f'invalid duration "{text}"')

    if negative:
        return -total
    if total > _LIMIT - 1:
        raise ConfigError(f'invalid duration "{text}"')
    return total


def _split_fraction(value: int, precision: int) -> tuple[int, str]:
    whole, fraction = divmod(value, 10**precision)
    if fraction == 0:
        return whole, ""
    return whole, "." + f"{fraction:0{precision}d}".rstrip("0")


def format_duration(nanoseconds: int) -> str:
    """Format nanoseconds in the shortest "1h2m3.5s" style form."""
    value = int(nanoseconds)
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value == 0:
        return "0s"
    if value < SECOND:
        if value < MICROSECOND:
            return f"{sign}{value}ns"
        if value < MILLISECOND:
            precision, unit = 3, _MICRO_SIGN + "s"
        else:
            precision, unit = 6, "ms"
        whole, fraction = _split_fraction(value, precision)
        return f"{sign}{whole}{fraction}{unit}"

    seconds, fraction = _split_fraction(value, 9)
    minutes, secs = divmod(seconds, 60)
    hours, mins = divmod(minutes, 60)
    text = f"{secs}{fraction}s"
    if minutes:
        text = f"{mins}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return sign + text


class Duration(int):
    """A number of nanoseconds, serialised as a duration string."""

    @classmethod
    def from_json(cls, value) -> Duration:
        """Build from a decoded JSON value: a number of nanoseconds or a duration string."""
        if isinstance(value, bool):
            raise ConfigError("invalid duration")
        if isinstance(value, (int, float)):
            return cls(int(value))
        if isinstance(value, str):
            return cls(parse_duration(value))
        raise ConfigError("invalid duration")

    def to_json(self) -> str:
        """Return the duration string used when serialising."""
        return format_duration(self)

    def __str__(self) -> str:
        return format_duration(self)

    def __repr__(self) -> str:
        return f"Duration({int(self)})"