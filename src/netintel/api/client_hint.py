"""
Client IP hint extraction from proxy and CDN headers
"""

import re
from typing import Dict, Mapping, Optional

from netintel.core.models import IpHint
from netintel.enrichment.location.normalizers import classify_address

# Most trusted first
CLIENT_IP_HEADERS = [
    'x-nf-client-connection-ip',
    'cf-connecting-ip',
    'true-client-ip',
    'x-real-ip',
    'x-forwarded-for',
    'x-vercel-forwarded-for',
    'forwarded',
]

_FORWARDED_FOR = re.compile(r'for=(?:"?\[?([0-9a-fA-F:.%]+)\]?"?)', re.IGNORECASE)
_FOR_PREFIX = re.compile(r'^for=', re.IGNORECASE)
_QUOTED = re.compile(r'^"(.+)"$')


def clean_ip_candidate(value: str) -> Optional[str]:
    """
    Reduce one header token to a bare IP literal.

    Handles RFC 7239 "for=" syntax, quoting, bracketed IPv6, IPv4 port
    suffixes and zone ids. Returns None if what is left is not an address.
    """
    candidate = value.strip()
    if not candidate:
        return None

    candidate = _FOR_PREFIX.sub('', candidate).strip()
    candidate = _QUOTED.sub(r'\1', candidate)

    if ';' in candidate:
        candidate = candidate.split(';', 1)[0].strip()

    if candidate.startswith('['):
        end_bracket = candidate.find(']')
        if end_bracket > 0:
            candidate = candidate[1:end_bracket]

    if '.' in candidate and ':' in candidate:
        candidate = candidate.split(':', 1)[0]

    candidate = candidate.split('%', 1)[0]
    return candidate if classify_address(candidate) else None


def parse_ip_from_header_value(raw: str) -> Optional[str]:
    """Return the first usable address in a comma-separated header value"""
    for part in raw.split(','):
        forwarded = _FORWARDED_FOR.search(part)
        if forwarded:
            ip = clean_ip_candidate(forwarded.group(1))
            if ip:
                return ip

        ip = clean_ip_candidate(part)
        if ip:
            return ip
    return None


def get_client_ip_hint(headers: Mapping[str, str]) -> Optional[IpHint]:
    """Scan known proxy headers in priority order for the caller's address"""
    lowered: Dict[str, str] = {}
    for name, value in headers.items():
        key = str(name).lower()
        if key in lowered:
            # Repeated header lines read as one comma-joined value, first line first
            lowered[key] = f"{lowered[key]}, {value}"
        else:
            lowered[key] = value

    for header_name in CLIENT_IP_HEADERS:
        raw_value = lowered.get(header_name)
        if not raw_value:
            continue
        ip = parse_ip_from_header_value(raw_value)
        if ip:
            return IpHint(ip=ip, source=header_name)

    return None
