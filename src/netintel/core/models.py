"""
Core models for the network intel system
Merged intel record, per-provider observations, provider descriptors and aggregation results
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any


class ProviderFormat(Enum):
    STRUCTURED = "structured"
    PLAIN_TEXT = "plain-text"


@dataclass
class IntelRecord:
    """The merged view of everything learned about the caller so far"""
    ipv4: Optional[str] = None
    ipv6: Optional[str] = None
    isp: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None

    def has_any_ip(self) -> bool:
        return bool(self.ipv4 or self.ipv6)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ipv4': self.ipv4,
            'ipv6': self.ipv6,
            'isp': self.isp,
            'city': self.city,
            'country': self.country,
            'lat': self.lat,
            'lon': self.lon,
        }


@dataclass
class PartialObservation:
    """
    What a single provider reported.
    A field left as None means the provider did not report it, not that it is empty.
    """
    ipv4: Optional[str] = None
    ipv6: Optional[str] = None
    isp: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None

    def is_empty(self) -> bool:
        return all(value is None for value in (
            self.ipv4, self.ipv6, self.isp, self.city, self.country, self.lat, self.lon
        ))


@dataclass(frozen=True)
class ProviderDescriptor:
    """A single third-party endpoint to query"""
    id: str
    url: str
    format: ProviderFormat


@dataclass(frozen=True)
class TargetedProviderTemplate:
    """A lookup-this-IP endpoint; url_template carries an {ip} placeholder"""
    id: str
    format: ProviderFormat
    url_template: str

    def build(self, encoded_ip: str) -> ProviderDescriptor:
        return ProviderDescriptor(
            id=self.id,
            url=self.url_template.format(ip=encoded_ip),
            format=self.format,
        )


@dataclass
class IpHint:
    """Caller address taken from an upstream proxy header"""
    ip: str
    source: str

    @property
    def source_label(self) -> str:
        return f"request-header:{self.source}"


@dataclass
class ProviderFailure:
    source: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {'source': self.source, 'reason': self.reason}


@dataclass
class FetchOutcome:
    """Result reported back by one provider worker"""
    provider_id: str
    observation: Optional[PartialObservation] = None
    failure: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.failure is None


@dataclass
class AggregationResult:
    """Final merged record plus diagnostics for one aggregation run"""
    record: IntelRecord = field(default_factory=IntelRecord)
    attempted_provider_ids: List[str] = field(default_factory=list)
    failures: List[ProviderFailure] = field(default_factory=list)
    sources_used: List[str] = field(default_factory=list)
    processing_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.record.has_any_ip()

    def to_payload(self) -> Dict[str, Any]:
        """Build the JSON body served by the network-intel endpoint"""
        data = self.record.to_dict()
        data['sourcesUsed'] = list(self.sources_used)
        return {
            'success': self.success,
            'data': data,
            'diagnostics': {
                'attempted': list(self.attempted_provider_ids),
                'failures': [failure.to_dict() for failure in self.failures],
            },
        }
