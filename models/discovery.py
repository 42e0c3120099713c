"""Discovery results: candidates and the outcome of one discovery method."""

from dataclasses import dataclass, field
from enum import Enum

from models.types import BridgeInfo


class DiscoveryMethod(Enum):
    CLOUD_SERVICE = 'cloud_service'
    MDNS = 'mdns'
    MANUAL = 'manual'
    NETWORK_SCAN = 'network_scan'

    @property
    def priority(self) -> int:
        return METHOD_PRIORITY[self]

    @property
    def label(self) -> str:
        return METHOD_LABELS[self]


METHOD_PRIORITY = {
    DiscoveryMethod.CLOUD_SERVICE: 4,
    DiscoveryMethod.MANUAL: 3,
    DiscoveryMethod.MDNS: 2,
    DiscoveryMethod.NETWORK_SCAN: 1,
}

METHOD_LABELS = {
    DiscoveryMethod.CLOUD_SERVICE: 'Philips service',
    DiscoveryMethod.MDNS: 'mDNS',
    DiscoveryMethod.MANUAL: 'manual entry',
    DiscoveryMethod.NETWORK_SCAN: 'network scan',
}


@dataclass(frozen=True)
class BridgeCandidate:
    """A bridge found by one discovery method."""
    ip: str
    id: str | None = None
    name: str | None = None
    model: str | None = None
    version: str | None = None
    port: int | None = None

    @classmethod
    def from_config(cls, ip: str, config: dict, known_id: str | None = None) -> 'BridgeCandidate':
        """Build a candidate from a GET /api/0/config body."""
        return cls(
            ip=ip,
            id=known_id or config.get('bridgeid'),
            name=config.get('name'),
            model=config.get('modelid'),
            version=config.get('apiversion'),
            port=80,
        )

    @property
    def display_name(self) -> str:
        if self.name:
            return f"{self.name} ({self.ip})"
        if self.id:
            return f"Bridge {self.id[:8]} ({self.ip})"
        return f"Bridge at {self.ip}"

    def summary(self) -> str:
        parts = [f"IP: {self.ip}"]
        if self.id:
            parts.append(f"ID: {self.id}")
        if self.name:
            parts.append(f"Name: {self.name}")
        if self.model:
            parts.append(f"Model: {self.model}")
        if self.version:
            parts.append(f"API: {self.version}")
        return ', '.join(parts)

    def is_complete(self) -> bool:
        return self.id is not None and self.name is not None

    def to_bridge_info(self) -> BridgeInfo:
        return {
            'id': self.id,
            'internalipaddress': self.ip,
            'port': self.port,
            'name': self.name,
            'modelid': self.model,
            'swversion': self.version,
        }


@dataclass
class DiscoveryOutcome:
    """Candidates produced by a single discovery method, in discovery order."""
    method: DiscoveryMethod
    bridges: list[BridgeCandidate] = field(default_factory=list)

    def first_bridge(self) -> BridgeCandidate | None:
        return self.bridges[0] if self.bridges else None

    def has_bridges(self) -> bool:
        return bool(self.bridges)

    def bridge_count(self) -> int:
        return len(self.bridges)

    def summary(self) -> str:
        return f"Found {self.bridge_count()} bridge(s) via {self.method.label}"
