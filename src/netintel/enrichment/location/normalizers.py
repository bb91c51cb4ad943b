"""
Field normalizers for provider-reported location data
Address classification, placeholder filtering, country names and coordinate parsing
"""

import math
import re
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class AddressFamily(Enum):
    IPV4 = "IPv4"
    IPV6 = "IPv6"


# Values providers use when they have nothing to say
GENERIC_TEXT_VALUES = frozenset({
    'unknown', 'n/a', 'na', 'none', 'null', 'undefined', '-', 'نامشخص'
})

COUNTRY_CODES: Dict[str, str] = {
    'IR': 'Iran', 'US': 'United States', 'GB': 'United Kingdom',
    'DE': 'Germany', 'FR': 'France', 'TR': 'Turkey', 'AE': 'United Arab Emirates',
    'IQ': 'Iraq', 'RU': 'Russia', 'NL': 'Netherlands', 'CA': 'Canada',
    'AU': 'Australia', 'JP': 'Japan', 'CN': 'China', 'IN': 'India',
    'IT': 'Italy', 'ES': 'Spain', 'SE': 'Sweden', 'NO': 'Norway', 'DK': 'Denmark',
    'FI': 'Finland', 'NZ': 'New Zealand', 'KR': 'South Korea', 'SG': 'Singapore',
    'HK': 'Hong Kong', 'IL': 'Israel', 'CH': 'Switzerland', 'AT': 'Austria',
    'BE': 'Belgium', 'LU': 'Luxembourg'
}

_DIGITS = re.compile(r'[0-9]+')
_HEX_AND_COLONS = re.compile(r'[0-9a-fA-F:]+')
_TWO_LETTERS = re.compile(r'[A-Z]{2}')


def is_valid_ipv4(value: str) -> bool:
    parts = value.split('.')
    if len(parts) != 4:
        return False
    return all(_DIGITS.fullmatch(part) and int(part) <= 255 for part in parts)


def is_valid_ipv6(value: str) -> bool:
    """Shape check only; no RFC 5952 canonicalization"""
    if ':' not in value:
        return False
    if not _HEX_AND_COLONS.fullmatch(value):
        return False
    if ':::' in value:
        return False
    return len(value.split(':')) <= 8


def classify_address(value: Optional[str]) -> Optional[AddressFamily]:
    """Return the address family of *value*, or None if it is not an IP literal"""
    if not value or not isinstance(value, str):
        return None
    ip = value.strip()
    if not ip:
        return None
    if is_valid_ipv4(ip):
        return AddressFamily.IPV4
    if is_valid_ipv6(ip):
        return AddressFamily.IPV6
    return None


def is_meaningful(value: Optional[str]) -> bool:
    """True for a non-blank string that is not a known placeholder"""
    if not value or not isinstance(value, str):
        return False
    trimmed = value.strip()
    if not trimmed:
        return False
    return trimmed.lower() not in GENERIC_TEXT_VALUES


def normalize_country(value: Optional[str]) -> Optional[str]:
    """
    Expand a two-letter country code to its name.

    Unknown codes come back uppercased; anything that is not a code is
    returned trimmed.
    """
    if not value or not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    upper = trimmed.upper()
    if _TWO_LETTERS.fullmatch(upper):
        return COUNTRY_CODES.get(upper, upper)
    return trimmed


def parse_numeric_coordinate(value: Any) -> Optional[float]:
    """Accept a number or a numeric string; None unless the result is finite"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            parsed = float(value)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        parsed = float(value)
    else:
        return None
    return parsed if math.isfinite(parsed) else None


def parse_coordinate_pair(value: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """Parse a combined "lat,lon" string; each side fails independently"""
    if not value or not isinstance(value, str):
        return None, None
    raw_lat, _, raw_lon = value.partition(',')
    return parse_numeric_coordinate(raw_lat), parse_numeric_coordinate(raw_lon)


def redact_ip_for_diagnostics(ip: Optional[str]) -> str:
    """Mask the host part of an address before it goes into a log line"""
    if not ip:
        return "missing"
    family = classify_address(ip)
    if family is AddressFamily.IPV4:
        parts = ip.strip().split('.')
        return f"{parts[0]}.{parts[1]}.{parts[2]}.x"
    if family is AddressFamily.IPV6:
        parts = [part for part in ip.strip().split(':') if part]
        if len(parts) < 2:
            return "xxxx::"
        return f"{parts[0]}:{parts[1]}::xxxx"
    return "invalid"
