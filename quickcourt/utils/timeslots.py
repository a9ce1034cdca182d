from datetime import datetime
from typing import List, Tuple
from config.config import Config

TIME_FORMAT = '%H:%M'
DATE_FORMAT = '%Y-%m-%d'


def to_minutes(value: str) -> int:
    """'HH:MM' -> minutes since midnight"""
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def end_time(start: str, duration_hours: int) -> str:
    """End of a booking that starts at `start` and lasts whole hours"""
    return from_minutes(to_minutes(start) + int(duration_hours) * 60)


def hourly_windows(start: str, end: str) -> List[Tuple[str, str]]:
    """Split [start, end) into one-hour windows; a trailing partial hour is kept as is"""
    windows = []
    cursor = to_minutes(start)
    stop = to_minutes(end)
    while cursor < stop:
        nxt = min(cursor + 60, stop)
        windows.append((from_minutes(cursor), from_minutes(nxt)))
        cursor = nxt
    return windows


def default_grid() -> List[Tuple[str, str]]:
    """Hourly windows generated for a court/date with no persisted rows"""
    return [
        (f"{hour:02d}:00", f"{hour + 1:02d}:00")
        for hour in range(Config.SLOT_GRID_FIRST_HOUR, Config.SLOT_GRID_LAST_HOUR + 1)
    ]


def is_grid_window(start: str, end: str) -> bool:
    return (start, end) in default_grid()


def overlaps(start1: str, end1: str, start2: str, end2: str) -> bool:
    """True if [start1, end1) overlaps [start2, end2)"""
    return to_minutes(start1) < to_minutes(end2) and to_minutes(start2) < to_minutes(end1)


def today_iso() -> str:
    return datetime.utcnow().strftime(DATE_FORMAT)
