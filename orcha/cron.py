"""Five-field cron expressions, matched against UTC times."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

_INT_PREFIX = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


class CronParseError(ValueError):
    """Raised for a malformed cron expression."""


def _to_int(text: str) -> int:
    """Read a leading integer from ``text``; trailing characters are ignored."""
    match = _INT_PREFIX.match(text)
    if match is None:
        raise CronParseError(f"not a number: {text!r}")
    value = int(match.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        raise CronParseError(f"number out of range: {text!r}")
    return value


def _parse_field(text: str, lo: int, hi: int, dow: bool = False) -> frozenset[int]:
    parts = text.split(",")
    if parts and parts[-1] == "":
        parts.pop()
    values: set[int] = set()
    for part in parts:
        if not part:
            raise CronParseError(f"empty list item in {text!r}")
        step = 1
        span = part
        if "/" in part:
            span, _, step_text = part.partition("/")
            step = _to_int(step_text)
            if step <= 0:
                raise CronParseError(f"step must be positive in {part!r}")
        if span == "*":
            start, end = lo, hi
        elif "-" in span:
            first, _, second = span.partition("-")
            start, end = _to_int(first), _to_int(second)
        else:
            start = end = _to_int(span)
        if start > end:
            raise CronParseError(f"range start after end in {part!r}")
        if start < lo or end > hi:
            raise CronParseError(f"value outside {lo}-{hi} in {part!r}")
        for value in range(start, end + 1, step):
            values.add(0 if dow and value == 7 else value)
    return frozenset(values)


@dataclass(frozen=True)
class CronExpr:
    """A parsed ``minute hour day-of-month month day-of-week`` expression.

    If both day fields are restricted, a time matches when either one does;
    otherwise both must match.
    """

    minutes: frozenset[int]
    hours: frozenset[int]
    days_of_month: frozenset[int]
    months: frozenset[int]
    days_of_week: frozenset[int]
    dom_star: bool = True
    dow_star: bool = True

    @classmethod
    def parse(cls, expr: str) -> CronExpr:
        fields = expr.split()
        if len(fields) != 5:
            raise CronParseError(f"expected 5 fields, got {len(fields)}")
        return cls(
            minutes=_parse_field(fields[0], 0, 59),
            hours=_parse_field(fields[1], 0, 23),
            days_of_month=_parse_field(fields[2], 1, 31),
            months=_parse_field(fields[3], 1, 12),
            days_of_week=_parse_field(fields[4], 0, 7, dow=True),
            dom_star=fields[2] == "*",
            dow_star=fields[4] == "*",
        )

    def matches(self, when: datetime) -> bool:
        """True if ``when`` (UTC; aware datetimes are converted) matches."""
        if when.tzinfo is not None:
            when = when.astimezone(timezone.utc)
        if when.minute not in self.minutes:
            return False
        if when.hour not in self.hours:
            return False
        if when.month not in self.months:
            return False
        dom_hit = when.day in self.days_of_month
        dow_hit = when.isoweekday() % 7 in self.days_of_week
        if not self.dom_star and not self.dow_star:
            return dom_hit or dow_hit
        return dom_hit and dow_hit