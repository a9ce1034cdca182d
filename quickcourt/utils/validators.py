import math
import re
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple
from config.config import Config
from .errors import ValidationError


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """Validate email format"""
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not email:
        return False, "Email is required"
    if not re.match(pattern, email):
        return False, "Invalid email format"
    return True, None


def validate_password(password: str) -> Tuple[bool, Optional[str]]:
    """Validate password strength"""
    if not password or len(password) < 8:
        return False, "Password must be at least 8 characters long"
    if not re.search(r'[A-Za-z]', password):
        return False, "Password must contain at least one letter"
    if not re.search(r'\d', password):
        return False, "Password must contain at least one number"
    return True, None


def validate_date_iso(value: str) -> Tuple[bool, Optional[str]]:
    """Validate a YYYY-MM-DD calendar date"""
    try:
        datetime.strptime(value or '', '%Y-%m-%d')
    except ValueError:
        return False, "Invalid date format. Use YYYY-MM-DD"
    return True, None


def validate_time(value: str) -> Tuple[bool, Optional[str]]:
    """Validate a HH:MM wall-clock time"""
    if not value or not re.match(r'^([01]\d|2[0-3]):[0-5]\d$', value):
        return False, "Invalid time format. Use HH:MM"
    return True, None


def require_fields(data: Optional[Dict], fields: Iterable[str]) -> Dict:
    """Raise ValidationError naming the first missing field"""
    data = data or {}
    for field in fields:
        if data.get(field) in (None, ''):
            raise ValidationError(f'{field} is required')
    return data


def check(result: Tuple[bool, Optional[str]]):
    """Raise the message of a failed (valid, error) validator result"""
    valid, error = result
    if not valid:
        raise ValidationError(error)


def parse_pagination(args, default_limit: int = Config.DEFAULT_PAGE_SIZE) -> Tuple[int, int]:
    """(page, limit) from query args; page >= 1, limit clamped to [1, MAX_PAGE_SIZE]"""
    try:
        page = int(args.get('page') or 1)
        limit = int(args.get('limit') or default_limit)
    except (TypeError, ValueError):
        raise ValidationError('page and limit must be integers')
    return max(page, 1), min(max(limit, 1), Config.MAX_PAGE_SIZE)


def parse_float(value, name: str) -> Optional[float]:
    """Optional numeric query/body value"""
    if value in (None, ''):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be a number')
    if not math.isfinite(number):
        raise ValidationError(f'{name} must be a number')
    return number


def parse_int(value, name: str) -> Optional[int]:
    """Optional id or count from a query/body value"""
    if value in (None, ''):
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f'{name} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be an integer')


def parse_bool(data: Dict, name: str, default: bool) -> bool:
    """JSON boolean field; absent means `default`, anything but true/false is rejected"""
    if name not in data:
        return default
    value = data[name]
    if not isinstance(value, bool):
        raise ValidationError(f'{name} must be true or false')
    return value
