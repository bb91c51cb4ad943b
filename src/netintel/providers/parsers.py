"""
Provider response parsers
Translate each provider family's body into a PartialObservation.

Providers disagree on key names, so every logical field is read from an
ordered list of aliases and the first usable value wins. Parsers are looked
up by provider id prefix; adding a provider family means adding one function
and one registry entry.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from netintel.core.models import PartialObservation, ProviderDescriptor, ProviderFormat
from netintel.enrichment.location.normalizers import (
    AddressFamily,
    classify_address,
    parse_coordinate_pair,
    parse_numeric_coordinate,
)

logger = logging.getLogger(__name__)

Parser = Callable[[Dict[str, Any]], PartialObservation]


def to_record(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def pick_string(record: Dict[str, Any], keys: List[str]) -> Optional[str]:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def pick_coordinate(record: Dict[str, Any], keys: List[str]) -> Optional[float]:
    for key in keys:
        coordinate = parse_numeric_coordinate(record.get(key))
        if coordinate is not None:
            return coordinate
    return None


def observation_from_ip(value: Optional[str], **fields) -> PartialObservation:
    """Place *value* under the field matching its address family"""
    family = classify_address(value)
    if family is AddressFamily.IPV4:
        fields['ipv4'] = value.strip()
    elif family is AddressFamily.IPV6:
        fields['ipv6'] = value.strip()
    return PartialObservation(**fields)


def _geo_fields(record: Dict[str, Any], isp: List[str], city: List[str], country: List[str]) -> Dict[str, Any]:
    return {
        'isp': pick_string(record, isp) if isp else None,
        'city': pick_string(record, city),
        'country': pick_string(record, country),
        'lat': pick_coordinate(record, ['latitude', 'lat']),
        'lon': pick_coordinate(record, ['longitude', 'lon']),
    }


def parse_ipify(record: Dict[str, Any]) -> PartialObservation:
    return observation_from_ip(pick_string(record, ['ip']))


def parse_ipwhois(record: Dict[str, Any]) -> PartialObservation:
    if record.get('success') is False:
        return PartialObservation()
    connection = to_record(record.get('connection'))
    fields = _geo_fields(
        record,
        isp=[],
        city=['city'],
        country=['country', 'country_name', 'countryCode', 'country_code'],
    )
    fields['isp'] = pick_string(connection, ['isp', 'org', 'organization'])
    return observation_from_ip(pick_string(record, ['ip']), **fields)


def parse_ipapi(record: Dict[str, Any]) -> PartialObservation:
    if record.get('error') is True:
        return PartialObservation()
    return observation_from_ip(
        pick_string(record, ['ip']),
        **_geo_fields(
            record,
            isp=['org', 'isp', 'asn_org'],
            city=['city', 'region', 'region_name'],
            country=['country_name', 'country', 'country_code'],
        )
    )


def parse_ipinfo(record: Dict[str, Any]) -> PartialObservation:
    lat, lon = parse_coordinate_pair(pick_string(record, ['loc']))
    return observation_from_ip(
        pick_string(record, ['ip']),
        isp=pick_string(record, ['org']),
        city=pick_string(record, ['city', 'region']),
        country=pick_string(record, ['country']),
        lat=lat,
        lon=lon,
    )


def parse_freeipapi(record: Dict[str, Any]) -> PartialObservation:
    return observation_from_ip(
        pick_string(record, ['ipAddress', 'ip']),
        **_geo_fields(
            record,
            isp=['isp', 'organizationName', 'organization'],
            city=['cityName', 'city'],
            country=['countryName', 'countryCode', 'country'],
        )
    )


def parse_ipsb(record: Dict[str, Any]) -> PartialObservation:
    return observation_from_ip(
        pick_string(record, ['ip']),
        **_geo_fields(
            record,
            isp=['isp', 'organization', 'asn_organization'],
            city=['city', 'region'],
            country=['country', 'country_name', 'country_code'],
        )
    )


def parse_ipwhoisapp(record: Dict[str, Any]) -> PartialObservation:
    if record.get('success') is False:
        return PartialObservation()
    return observation_from_ip(
        pick_string(record, ['ip']),
        **_geo_fields(
            record,
            isp=['isp', 'org', 'organization'],
            city=['city', 'region'],
            country=['country', 'country_code'],
        )
    )


def parse_geolocationdb(record: Dict[str, Any]) -> PartialObservation:
    # no ISP in this provider's schema
    return observation_from_ip(
        pick_string(record, ['IPv4', 'ip']),
        **_geo_fields(
            record,
            isp=[],
            city=['city', 'region', 'state'],
            country=['country_name', 'country_code', 'country'],
        )
    )


def parse_ifconfigco(record: Dict[str, Any]) -> PartialObservation:
    return observation_from_ip(
        pick_string(record, ['ip']),
        **_geo_fields(
            record,
            isp=['asn_org', 'org'],
            city=['city', 'region_name', 'region'],
            country=['country', 'country_iso'],
        )
    )


def parse_myip(record: Dict[str, Any]) -> PartialObservation:
    return observation_from_ip(
        pick_string(record, ['ip']),
        country=pick_string(record, ['country', 'cc']),
    )


def parse_ipapihttp(record: Dict[str, Any]) -> PartialObservation:
    status = pick_string(record, ['status'])
    if status and status.lower() == 'fail':
        logger.debug(f"ip-api reported failure: {record.get('message')}")
        return PartialObservation()
    return observation_from_ip(
        pick_string(record, ['query', 'ip']),
        isp=pick_string(record, ['isp', 'org']),
        city=pick_string(record, ['city', 'regionName']),
        country=pick_string(record, ['country', 'countryCode']),
        lat=pick_coordinate(record, ['lat', 'latitude']),
        lon=pick_coordinate(record, ['lon', 'longitude']),
    )


# Provider id prefix -> parser for structured bodies
STRUCTURED_PARSERS: Dict[str, Parser] = {
    'ipify-': parse_ipify,
    'ipwhois-geo': parse_ipwhois,
    'ipapi-geo': parse_ipapi,
    'ipinfo-geo': parse_ipinfo,
    'freeipapi-geo': parse_freeipapi,
    'ipsb-geo': parse_ipsb,
    'ipwhoisapp-geo': parse_ipwhoisapp,
    'geolocationdb-geo': parse_geolocationdb,
    'ifconfigco-geo': parse_ifconfigco,
    'myip-geo': parse_myip,
    'ipapihttp-geo': parse_ipapihttp,
}

IP_ECHO_SUFFIX = '-ip'


def resolve_parser(provider_id: str) -> Optional[Parser]:
    """Return the parser registered under the longest prefix of *provider_id*"""
    matches = [prefix for prefix in STRUCTURED_PARSERS if provider_id.startswith(prefix)]
    if not matches:
        return None
    return STRUCTURED_PARSERS[max(matches, key=len)]


def parse_ip_echo(text: str) -> PartialObservation:
    """The whole trimmed body is the candidate address"""
    return observation_from_ip(text.strip())


def parse_provider_response(provider: ProviderDescriptor, raw: Any) -> PartialObservation:
    """
    Extract an observation from one provider's decoded body

    Args:
        provider: Descriptor of the provider that answered
        raw: Decoded JSON for structured providers, text for plain-text ones

    Returns:
        PartialObservation; empty when the provider reported nothing usable
    """
    if provider.format is ProviderFormat.PLAIN_TEXT:
        if not isinstance(raw, str) or not raw.strip():
            return PartialObservation()
        if provider.id.endswith(IP_ECHO_SUFFIX):
            return parse_ip_echo(raw)
        return PartialObservation()

    parser = resolve_parser(provider.id)
    if parser is None:
        logger.warning(f"No parser registered for provider {provider.id}")
        return PartialObservation()
    return parser(to_record(raw))
