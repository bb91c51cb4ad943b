"""
Provider catalog
Static pools of IP-echo and geolocation endpoints plus lookup-this-IP variants
"""

import logging
from typing import List, Optional
from urllib.parse import quote

from netintel.core.models import ProviderDescriptor, ProviderFormat, TargetedProviderTemplate
from netintel.enrichment.location.normalizers import redact_ip_for_diagnostics

logger = logging.getLogger(__name__)

STRUCTURED = ProviderFormat.STRUCTURED
PLAIN_TEXT = ProviderFormat.PLAIN_TEXT

_IP_API_FIELDS = "status,message,country,countryCode,city,regionName,lat,lon,isp,org,query"

# Pure IP echo endpoints. Ids ending in "-ip" mark plain-text bodies holding only an address.
BASE_IP_PROVIDERS: List[ProviderDescriptor] = [
    ProviderDescriptor('ipify-v4', 'https://api4.ipify.org?format=json', STRUCTURED),
    ProviderDescriptor('ipify-v6', 'https://api6.ipify.org?format=json', STRUCTURED),
    ProviderDescriptor('ipify-v64', 'https://api64.ipify.org?format=json', STRUCTURED),
    ProviderDescriptor('ipify-generic', 'https://api.ipify.org?format=json', STRUCTURED),
    ProviderDescriptor('ipsb-ip', 'https://api.ip.sb/ip', PLAIN_TEXT),
    ProviderDescriptor('ipsb64-ip', 'https://api64.ip.sb/ip', PLAIN_TEXT),
    ProviderDescriptor('icanhazip-v4-ip', 'https://ipv4.icanhazip.com', PLAIN_TEXT),
    ProviderDescriptor('icanhazip-v6-ip', 'https://ipv6.icanhazip.com', PLAIN_TEXT),
    ProviderDescriptor('ifconfig-ip', 'https://ifconfig.me/ip', PLAIN_TEXT),
    ProviderDescriptor('identme-ip', 'https://ident.me', PLAIN_TEXT),
    ProviderDescriptor('checkip-amazon-ip', 'https://checkip.amazonaws.com', PLAIN_TEXT),
    ProviderDescriptor('seeip-ip', 'https://ip.seeip.org', PLAIN_TEXT),
    ProviderDescriptor('ifconfigco-ip', 'https://ifconfig.co/ip', PLAIN_TEXT),
    ProviderDescriptor('myexternalip-ip', 'https://myexternalip.com/raw', PLAIN_TEXT),
]

# Geolocation endpoints that infer the caller from the connection itself
UNTARGETED_GEO_PROVIDERS: List[ProviderDescriptor] = [
    ProviderDescriptor('ipwhois-geo', 'https://ipwho.is/', STRUCTURED),
    ProviderDescriptor('ipapi-geo', 'https://ipapi.co/json/', STRUCTURED),
    ProviderDescriptor('ipinfo-geo', 'https://ipinfo.io/json', STRUCTURED),
    ProviderDescriptor('freeipapi-geo', 'https://freeipapi.com/api/json', STRUCTURED),
    ProviderDescriptor('ipsb-geo', 'https://api.ip.sb/geoip', STRUCTURED),
    ProviderDescriptor('ipwhoisapp-geo', 'https://ipwhois.app/json/', STRUCTURED),
    ProviderDescriptor('geolocationdb-geo', 'https://geolocation-db.com/json/', STRUCTURED),
    ProviderDescriptor('ifconfigco-geo', 'https://ifconfig.co/json', STRUCTURED),
    ProviderDescriptor('myip-geo', 'https://api.myip.com', STRUCTURED),
    ProviderDescriptor('ipapihttp-geo', f'http://ip-api.com/json/?fields={_IP_API_FIELDS}', STRUCTURED),
]

TARGETED_GEO_PROVIDER_TEMPLATES: List[TargetedProviderTemplate] = [
    TargetedProviderTemplate('ipwhois-geo-targeted', STRUCTURED, 'https://ipwho.is/{ip}'),
    TargetedProviderTemplate('ipapi-geo-targeted', STRUCTURED, 'https://ipapi.co/{ip}/json/'),
    TargetedProviderTemplate('ipinfo-geo-targeted', STRUCTURED, 'https://ipinfo.io/{ip}/json'),
    TargetedProviderTemplate('freeipapi-geo-targeted', STRUCTURED, 'https://freeipapi.com/api/json/{ip}'),
    TargetedProviderTemplate('ipsb-geo-targeted', STRUCTURED, 'https://api.ip.sb/geoip/{ip}'),
    TargetedProviderTemplate('ipwhoisapp-geo-targeted', STRUCTURED, 'https://ipwhois.app/json/{ip}'),
    TargetedProviderTemplate(
        'geolocationdb-geo-targeted', STRUCTURED, 'https://geolocation-db.com/json/{ip}&position=true'
    ),
    TargetedProviderTemplate(
        'ipapihttp-geo-targeted', STRUCTURED, f'http://ip-api.com/json/{{ip}}?fields={_IP_API_FIELDS}'
    ),
]


def build_targeted_providers(client_ip: str) -> List[ProviderDescriptor]:
    """Instantiate every lookup-this-IP template for *client_ip*"""
    encoded_ip = quote(client_ip.strip(), safe='')
    return [template.build(encoded_ip) for template in TARGETED_GEO_PROVIDER_TEMPLATES]


def build_providers(client_ip: Optional[str] = None) -> List[ProviderDescriptor]:
    """
    Build the provider list for one request

    Args:
        client_ip: Address hinted by an upstream proxy, if any

    Returns:
        Base IP pool, then targeted geolocation variants (only with a hint),
        then the untargeted geolocation pool
    """
    providers = list(BASE_IP_PROVIDERS)

    if client_ip:
        providers.extend(build_targeted_providers(client_ip))
        logger.debug(f"Added targeted geolocation providers for {redact_ip_for_diagnostics(client_ip)}")

    providers.extend(UNTARGETED_GEO_PROVIDERS)
    return providers
