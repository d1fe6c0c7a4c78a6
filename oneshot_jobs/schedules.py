"""Schedule expressions used by the one-shot trick.

Two kinds of expression are produced here:

* an interval of one scheduler tick (``"1 seconds"`` for pg_cron, or
  ``"* * * * *"`` when the tick is a whole minute), which fires on the next
  poll and on every poll after it;
* a concrete calendar pattern (``"<minute> <hour> <day> <month> *"``) for a
  minute that has already passed, which the scheduler will not fire again
  until the same minute comes round next year.
"""

import re
from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

_INTERVAL_RE = re.compile(r"^\s*(\d+)\s+seconds?\s*$")


def interval_schedule(tick_seconds: int) -> str:
    """Return the expression that fires every ``tick_seconds``."""
    if tick_seconds == 60:
        return "* * * * *"
    if not 1 <= tick_seconds <= 59:
        raise ValueError(f"Unsupported tick: {tick_seconds} seconds")
    return f"{tick_seconds} seconds"


def past_dated_schedule(now: datetime) -> str:
    """Return a calendar pattern for the minute before ``now``.

    The calendar language has minute granularity, so one tick back is a full
    minute regardless of the interval tick; anything closer would still match
    the current minute.
    """
    moment = now - relativedelta(minutes=1)
    return f"{moment.minute} {moment.hour} {moment.day} {moment.month} *"


def parse_interval_seconds(expression: str) -> Optional[int]:
    """Return the interval of a ``"N seconds"`` expression, or None."""
    match = _INTERVAL_RE.match(expression)
    if not match:
        return None
    return int(match.group(1))


def is_past_dated(expression: str) -> bool:
    """Whether ``expression`` is a concrete minute/hour/day/month pattern."""
    fields = expression.split()
    if len(fields) != 5:
        return False
    return all(field.isdigit() for field in fields[:4]) and fields[4] == "*"


def cron_matches(expression: str, when: datetime) -> bool:
    """Whether a five-field cron expression matches ``when``.

    Supports ``*``, ``*/n``, integers and comma lists, which covers every
    expression this library writes.
    """
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(f"Invalid cron expression: {expression!r}")

    # cron weekdays run Sunday=0
    weekday = (when.weekday() + 1) % 7
    values = (when.minute, when.hour, when.day, when.month, weekday)
    return all(_field_matches(field, value) for field, value in zip(fields, values))


def _field_matches(field: str, value: int) -> bool:
    for part in field.split(","):
        if part == "*":
            return True
        if part.startswith("*/"):
            step = int(part[2:])
            if step > 0 and value % step == 0:
                return True
            continue
        if int(part) == value:
            return True
    return False
