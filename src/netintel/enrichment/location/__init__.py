"""Location field normalizers"""

from .normalizers import (
    AddressFamily,
    classify_address,
    is_meaningful,
    normalize_country,
    parse_coordinate_pair,
    parse_numeric_coordinate,
    redact_ip_for_diagnostics,
)

__all__ = [
    'AddressFamily',
    'classify_address',
    'is_meaningful',
    'normalize_country',
    'parse_coordinate_pair',
    'parse_numeric_coordinate',
    'redact_ip_for_diagnostics'
]
