"""Bridge discovery.

Finds Hue bridges using, in order of preference:
- the Philips discovery service at https://discovery.meethue.com/ (N-UPnP)
- mDNS (not implemented; always returns an empty outcome)
- a scan of the local /24 networks, probing GET /api/0/config on every host
- a manually entered IP address
"""

import ipaddress
import socket
from concurrent.futures import ThreadPoolExecutor

import requests
from loguru import logger

from core.client import USER_AGENT
from core.errors import (
    BridgeConnectionFailed,
    BridgeNotFound,
    DiscoveryServiceUnreachable,
    HueStatusError,
    InvalidConfig,
    network_error,
)
from models.discovery import BridgeCandidate, DiscoveryMethod, DiscoveryOutcome

DISCOVERY_URL = 'https://discovery.meethue.com/'
DEFAULT_TIMEOUT = 10
HOSTS_PER_PREFIX = 254

# Scanned when no local IPv4 network can be determined
FALLBACK_PREFIXES = ['192.168.1', '192.168.0', '10.0.1', '172.16.0']


def probe_bridge(ip: str, timeout: float) -> BridgeCandidate | None:
    """Probe one address for a Hue bridge.

    Uses its own HTTP connection so probes can run concurrently. Any failure
    (refused, timeout, non-JSON, not a bridge) means "no bridge here".
    """
    try:
        response = requests.get(f"http://{ip}/api/0/config", timeout=timeout,
                                headers={'User-Agent': USER_AGENT})
        if not response.ok:
            return None
        config = response.json()
    except (requests.exceptions.RequestException, ValueError):
        return None

    if not isinstance(config, dict) or 'bridgeid' not in config:
        return None
    return BridgeCandidate.from_config(ip, config)


class BridgeDiscovery:
    """Locates bridges on the local network."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, discovery_url: str = DISCOVERY_URL,
                 session: requests.Session | None = None, max_workers: int = HOSTS_PER_PREFIX):
        self.timeout = timeout
        self.discovery_url = discovery_url
        self.session = session or requests.Session()
        self.session.headers.setdefault('User-Agent', USER_AGENT)
        self.max_workers = max_workers

    def discover_all(self) -> DiscoveryOutcome:
        """Try each automatic method in turn and return the first non-empty outcome.

        Raises:
            BridgeNotFound: if no method found a bridge
        """
        methods = (
            self.discover_via_cloud,
            self.discover_via_mdns,
            self.discover_via_network_scan,
        )
        for method in methods:
            try:
                outcome = method()
            except HueStatusError as e:
                logger.debug(f"{method.__name__} failed: {e}")
                continue
            if outcome.has_bridges():
                logger.debug(outcome.summary())
                return outcome

        raise BridgeNotFound()

    def discover_via_cloud(self) -> DiscoveryOutcome:
        """Ask the Philips discovery service for bridges registered from this network.

        Each entry is enriched with the bridge's own config; entries whose
        enrichment fails are kept with the discovery service data only.
        """
        logger.debug(f"Discovering bridges via {self.discovery_url}")
        try:
            response = self.session.get(self.discovery_url, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise network_error(e, 'Philips discovery service') from e
        except requests.exceptions.RequestException as e:
            raise DiscoveryServiceUnreachable(str(e)) from e

        if not response.ok:
            # 429 is common: the service rate limits lookups
            raise DiscoveryServiceUnreachable(f"HTTP {response.status_code}")

        try:
            entries = response.json()
            bridges = [(entry['internalipaddress'], entry['id'], entry.get('port')) for entry in entries]
        except (ValueError, KeyError, TypeError) as e:
            raise DiscoveryServiceUnreachable(f"Invalid JSON response: {e}") from e

        logger.debug(f"Found {len(bridges)} bridge(s) via Philips service")

        candidates = []
        for ip, bridge_id, port in bridges:
            try:
                candidates.append(self.enrich_bridge_info(ip, known_id=bridge_id))
            except HueStatusError as e:
                logger.debug(f"Could not enrich bridge at {ip}: {e}")
                candidates.append(BridgeCandidate(ip=ip, id=bridge_id, port=port))

        return DiscoveryOutcome(DiscoveryMethod.CLOUD_SERVICE, candidates)

    def discover_via_mdns(self) -> DiscoveryOutcome:
        """mDNS discovery is not implemented; returns an empty outcome."""
        logger.debug("mDNS discovery not implemented, skipping")
        return DiscoveryOutcome(DiscoveryMethod.MDNS, [])

    def discover_via_network_scan(self) -> DiscoveryOutcome:
        """Probe every host of each local /24 network."""
        bridges = []
        for prefix in self.get_local_network_prefixes():
            logger.debug(f"Scanning network range: {prefix}.0/24")
            bridges.extend(self.scan_network_range(prefix))

        logger.debug(f"Found {len(bridges)} bridge(s) via network scan")
        return DiscoveryOutcome(DiscoveryMethod.NETWORK_SCAN, bridges)

    def scan_network_range(self, prefix: str) -> list[BridgeCandidate]:
        """Probe ``prefix``.1 to ``prefix``.254 concurrently.

        All probes are waited for; each one has its own timeout and a failed
        probe only means no candidate at that address.
        """
        hosts = [f"{prefix}.{host}" for host in range(1, HOSTS_PER_PREFIX + 1)]
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='bridge-scan') as executor:
            results = list(executor.map(lambda ip: probe_bridge(ip, self.timeout), hosts))
        return [candidate for candidate in results if candidate is not None]

    def get_local_network_prefixes(self) -> list[str]:
        """Return the /24 prefixes (e.g. '192.168.1') of this machine's IPv4 addresses."""
        prefixes = []
        for ip in self.get_local_ip_addresses():
            address = ipaddress.ip_address(ip)
            if address.version == 4 and not address.is_loopback:
                prefix = '.'.join(ip.split('.')[:3])
                if prefix not in prefixes:
                    prefixes.append(prefix)

        if not prefixes:
            logger.debug("No local IPv4 network detected, scanning common ranges")
            return list(FALLBACK_PREFIXES)
        return prefixes

    @staticmethod
    def get_local_ip_addresses() -> list[str]:
        """Find the address used for outbound traffic.

        Connecting a UDP socket sends nothing; it only selects a route.
        """
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                sock.connect(('8.8.8.8', 80))
                return [sock.getsockname()[0]]
        except OSError:
            return []

    def enrich_bridge_info(self, ip: str, known_id: str | None = None) -> BridgeCandidate:
        """Query the bridge at ``ip`` for its name, model and API version."""
        operation = f"Bridge info query for {ip}"
        try:
            response = self.session.get(f"http://{ip}/api/0/config", timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise network_error(e, operation) from e

        if not response.ok:
            raise BridgeConnectionFailed(f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            config = response.json()
        except ValueError as e:
            raise BridgeConnectionFailed(f"{operation}: invalid response") from e
        if not isinstance(config, dict):
            raise BridgeConnectionFailed(f"{operation}: unexpected response")

        return BridgeCandidate.from_config(ip, config, known_id=known_id)

    def discover_manual(self, ip: str) -> DiscoveryOutcome:
        """Check a user-supplied address.

        Raises:
            InvalidConfig: if ``ip`` is not an IP address
            BridgeNotFound: if nothing answers like a bridge there
        """
        try:
            ipaddress.ip_address(ip)
        except ValueError as e:
            raise InvalidConfig(f"Invalid IP address: {ip}") from e

        logger.debug(f"Testing manual IP: {ip}")
        try:
            candidate = self.enrich_bridge_info(ip)
        except HueStatusError as e:
            logger.debug(f"No bridge found at {ip}: {e}")
            raise BridgeNotFound() from e

        return DiscoveryOutcome(DiscoveryMethod.MANUAL, [candidate])

    def validate_bridge(self, candidate: BridgeCandidate):
        """Confirm ``candidate`` answers and identifies as a Hue bridge."""
        operation = f"Bridge validation for {candidate.ip}"
        try:
            response = self.session.get(f"http://{candidate.ip}/api/0/config", timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise network_error(e, operation) from e
        except requests.exceptions.RequestException as e:
            raise BridgeConnectionFailed(str(e)) from e

        if not response.ok:
            raise BridgeConnectionFailed(f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            config = response.json()
        except ValueError as e:
            raise BridgeConnectionFailed(f"Invalid response: {e}") from e

        if not isinstance(config, dict) or 'bridgeid' not in config:
            raise BridgeConnectionFailed("Not a Hue bridge")

    @staticmethod
    def select_best_bridge(outcomes: list[DiscoveryOutcome]) -> BridgeCandidate | None:
        """First candidate of the highest-priority non-empty outcome.

        Priority: Philips service > manual > mDNS > network scan.
        """
        found = [outcome for outcome in outcomes if outcome.has_bridges()]
        if not found:
            return None
        best = max(found, key=lambda outcome: outcome.method.priority)
        return best.first_bridge()
