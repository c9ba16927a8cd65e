# /oracle_bot/core/intervals.py
# The bot runs on fixed-rate timers. Schedules are still written as cron
# expressions, but only the interval forms are accepted:
#   "* * * * *"     every minute
#   "*/N * * * *"   every N minutes
#   "0 * * * *"     every hour
#   "0 */N * * *"   every N hours
import re

_EVERY_N = re.compile(r"^\*/(\d+)$")


class IntervalParseError(ValueError):
    pass


def _step(field: str, expr: str) -> int:
    if field == "*":
        return 1
    match = _EVERY_N.match(field)
    if not match or int(match.group(1)) == 0:
        raise IntervalParseError(f"Unsupported schedule expression: {expr!r}")
    return int(match.group(1))


def interval_seconds(expr: str) -> float:
    fields = expr.split()
    if len(fields) != 5:
        raise IntervalParseError(f"Expected 5 cron fields, got {len(fields)}: {expr!r}")
    minute, hour, dom, month, dow = fields
    if (dom, month, dow) != ("*", "*", "*"):
        raise IntervalParseError(f"Unsupported schedule expression: {expr!r}")

    if minute == "0":
        return _step(hour, expr) * 3600.0
    if hour != "*":
        raise IntervalParseError(f"Unsupported schedule expression: {expr!r}")
    return _step(minute, expr) * 60.0
