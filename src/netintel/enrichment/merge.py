"""
Merge policy for folding provider observations into the intel record
"""

from dataclasses import replace
from typing import Optional

from netintel.core.models import IntelRecord, PartialObservation
from netintel.enrichment.location.normalizers import (
    AddressFamily,
    classify_address,
    is_meaningful,
    normalize_country,
    parse_numeric_coordinate,
)


def _trimmed(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def choose_isp(current: Optional[str], incoming: Optional[str]) -> Optional[str]:
    """
    Pick between two ISP names.

    A meaningful name beats a placeholder, and between two meaningful names
    the longer one wins; ties keep the current value.
    """
    current_ok = is_meaningful(current)
    incoming_ok = is_meaningful(incoming)

    if not current_ok and incoming_ok:
        return _trimmed(incoming)
    if current_ok and not incoming_ok:
        return _trimmed(current)
    if current_ok and incoming_ok:
        if len(incoming.strip()) > len(current.strip()):
            return _trimmed(incoming)
        return _trimmed(current)
    return _trimmed(current) or _trimmed(incoming)


def merge_intel(current: IntelRecord, incoming: PartialObservation) -> IntelRecord:
    """
    Fold one observation into the record and return the new record.

    Neither argument is modified. Identity fields are first-meaningful-wins,
    the ISP goes through choose_isp and coordinates are only adopted as a pair.
    """
    updates = {}

    if not current.ipv4 and classify_address(incoming.ipv4) is AddressFamily.IPV4:
        updates['ipv4'] = incoming.ipv4.strip()
    if not current.ipv6 and classify_address(incoming.ipv6) is AddressFamily.IPV6:
        updates['ipv6'] = incoming.ipv6.strip()

    if not current.city and is_meaningful(incoming.city):
        updates['city'] = incoming.city.strip()

    if not current.country and is_meaningful(incoming.country):
        country = normalize_country(incoming.country)
        if is_meaningful(country):
            updates['country'] = country

    updates['isp'] = choose_isp(current.isp, incoming.isp)

    lat = parse_numeric_coordinate(incoming.lat)
    lon = parse_numeric_coordinate(incoming.lon)
    if current.lat is None and current.lon is None and lat is not None and lon is not None:
        updates['lat'] = lat
        updates['lon'] = lon

    return replace(current, **updates)


def should_stop_early(record: IntelRecord) -> bool:
    """Both address families known plus an ISP or a country"""
    has_both_ips = bool(record.ipv4 and record.ipv6)
    has_geo = is_meaningful(record.isp) or is_meaningful(record.country)
    return has_both_ips and has_geo


def is_geo_weak(record: IntelRecord) -> bool:
    has_geo_text = (
        is_meaningful(record.isp) or is_meaningful(record.city) or is_meaningful(record.country)
    )
    has_coords = record.lat is not None and record.lon is not None
    return not has_geo_text and not has_coords
