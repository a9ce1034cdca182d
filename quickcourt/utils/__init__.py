from .logger import setup_logger, get_logger
from .security import hash_password, verify_password, generate_token, verify_token
from .validators import validate_email, validate_password, validate_date_iso, validate_time
from .distance import calculate_distance, get_coordinates_from_address, within_radius
from .reliability import adjust_reliability

__all__ = [
    'setup_logger', 'get_logger',
    'hash_password', 'verify_password', 'generate_token', 'verify_token',
    'validate_email', 'validate_password', 'validate_date_iso', 'validate_time',
    'calculate_distance', 'get_coordinates_from_address', 'within_radius',
    'adjust_reliability'
]
