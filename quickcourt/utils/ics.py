from datetime import datetime
import uuid

ICS_TIME_FORMAT = '%Y%m%dT%H%M%SZ'


def _escape(value: str) -> str:
    return (value or '').replace('\\', '\\\\').replace(';', '\\;').replace(',', '\\,').replace('\n', '\\n')


def generate_ics(title: str, start: datetime, end: datetime, location: str = '') -> str:
    """Single-event iCalendar document (times are UTC)"""
    lines = [
        'BEGIN:VCALENDAR',
        'VERSION:2.0',
        'PRODID:-//QuickCourt//Booking//EN',
        'BEGIN:VEVENT',
        f'UID:{uuid.uuid4()}@quickcourt',
        f'DTSTAMP:{datetime.utcnow().strftime(ICS_TIME_FORMAT)}',
        f'DTSTART:{start.strftime(ICS_TIME_FORMAT)}',
        f'DTEND:{end.strftime(ICS_TIME_FORMAT)}',
        f'SUMMARY:{_escape(title)}',
        f'LOCATION:{_escape(location)}',
        'END:VEVENT',
        'END:VCALENDAR',
    ]
    return '\r\n'.join(lines) + '\r\n'
