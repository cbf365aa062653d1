"""
Configuration Helper - scan configuration loading and validation

Defaults come from the packaged ranges.yaml; a user YAML file, environment
variables and explicit overrides are layered on top, in that order.
"""

import ipaddress
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .candidates import AddressRange, CandidateGenerator, Protocol, parse_range

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    'WARP_SCAN_CONCURRENCY': ('concurrency', int),
    'WARP_SCAN_TCP_TIMEOUT': ('tcp_timeout', float),
    'WARP_SCAN_UDP_TIMEOUT': ('udp_timeout', float),
}


class ScanConfigError(ValueError):
    """Configuration rejected before any probing starts"""


@dataclass
class ScanConfig:
    """Everything a scan run needs"""
    ipv4_ranges: List[AddressRange] = field(default_factory=list)
    ipv6_ranges: List[AddressRange] = field(default_factory=list)
    tcp_ports: List[int] = field(default_factory=list)
    udp_ports: List[int] = field(default_factory=list)
    tcp_timeout: Optional[float] = 2.0
    udp_timeout: Optional[float] = 1.0
    concurrency: int = 200
    seed_addresses: List[str] = field(default_factory=list)
    enable_ipv6: bool = False
    ping_prefilter: bool = False
    ping_limit: Optional[int] = None
    handshake_payload: Optional[bytes] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScanConfig":
        """Build a config from a plain mapping (as loaded from YAML)"""
        per_range = data.get('per_range')

        def ranges(key: str) -> List[AddressRange]:
            parsed = []
            for entry in data.get(key) or []:
                if isinstance(entry, str):
                    entry = {'prefix': entry}
                if not isinstance(entry, Mapping) or 'prefix' not in entry:
                    raise ScanConfigError(f"invalid {key} entry: {entry!r}")
                count = per_range if per_range is not None else entry.get('count', 25)
                parsed.append(AddressRange(prefix=str(entry['prefix']), count=int(count)))
            return parsed

        payload = data.get('handshake_payload')
        if isinstance(payload, str):
            try:
                payload = bytes.fromhex(payload)
            except ValueError as e:
                raise ScanConfigError(f"handshake_payload is not valid hex: {e}") from e

        try:
            return cls(
                ipv4_ranges=ranges('ipv4_ranges'),
                ipv6_ranges=ranges('ipv6_ranges'),
                tcp_ports=[int(port) for port in data.get('tcp_ports') or []],
                udp_ports=[int(port) for port in data.get('udp_ports') or []],
                tcp_timeout=_optional_float(data.get('tcp_timeout')),
                udp_timeout=_optional_float(data.get('udp_timeout')),
                concurrency=int(data.get('concurrency', 200)),
                seed_addresses=[str(address) for address in data.get('seed_addresses') or []],
                enable_ipv6=bool(data.get('enable_ipv6', False)),
                ping_prefilter=bool(data.get('ping_prefilter', False)),
                ping_limit=None if data.get('ping_limit') is None else int(data['ping_limit']),
                handshake_payload=payload,
            )
        except ScanConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise ScanConfigError(f"invalid configuration value: {e}") from e

    @property
    def active_ranges(self) -> List[AddressRange]:
        return self.ipv4_ranges + (self.ipv6_ranges if self.enable_ipv6 else [])

    def timeouts(self) -> Dict[Protocol, float]:
        timeouts = {}
        if self.tcp_timeout is not None:
            timeouts[Protocol.TCP] = self.tcp_timeout
        if self.udp_timeout is not None:
            timeouts[Protocol.UDP] = self.udp_timeout
        return timeouts

    def generator(self, rng=None) -> CandidateGenerator:
        return CandidateGenerator(
            ipv4_ranges=self.ipv4_ranges,
            ipv6_ranges=self.ipv6_ranges if self.enable_ipv6 else [],
            tcp_ports=self.tcp_ports,
            udp_ports=self.udp_ports,
            seed_addresses=self.seed_addresses,
            rng=rng,
        )

    def validate(self) -> "ScanConfig":
        """Raise ScanConfigError on any malformed setting; returns self"""
        if self.concurrency < 1:
            raise ScanConfigError(f"concurrency must be at least 1, got {self.concurrency}")

        if not self.tcp_ports and not self.udp_ports:
            raise ScanConfigError("no TCP or UDP ports configured")

        for protocol, ports, timeout in ((Protocol.TCP, self.tcp_ports, self.tcp_timeout),
                                         (Protocol.UDP, self.udp_ports, self.udp_timeout)):
            for port in ports:
                if not 1 <= port <= 65535:
                    raise ScanConfigError(f"{protocol.value} port out of range: {port}")
            if ports and (timeout is None or timeout <= 0):
                raise ScanConfigError(f"{protocol.value} timeout must be positive, got {timeout}")

        for version, specs in ((4, self.ipv4_ranges), (6, self.ipv6_ranges)):
            for spec in specs:
                if spec.count < 1:
                    raise ScanConfigError(f"range {spec.prefix} must sample at least 1 address")
                try:
                    parsed_version, _, _ = parse_range(spec)
                except ValueError as e:
                    raise ScanConfigError(f"invalid address range {spec.prefix!r}: {e}") from e
                if parsed_version != version:
                    raise ScanConfigError(f"range {spec.prefix} is not an IPv{version} range")

        for address in self.seed_addresses:
            try:
                ipaddress.ip_address(address.strip())
            except ValueError as e:
                raise ScanConfigError(f"invalid seed address: {e}") from e

        if not self.active_ranges and not self.seed_addresses:
            raise ScanConfigError("no address ranges or seed addresses to scan")

        if self.ping_limit is not None and self.ping_limit < 1:
            raise ScanConfigError(f"ping_limit must be at least 1, got {self.ping_limit}")

        if self.handshake_payload is not None and not self.handshake_payload:
            raise ScanConfigError("handshake_payload must not be empty")

        return self


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ScanConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ScanConfigError(f"config file {path} is not valid YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ScanConfigError(f"config file {path} must contain a mapping")
    return data


def load_default_config_data() -> Dict[str, Any]:
    """Load the packaged ranges.yaml"""
    try:
        from importlib import resources
        content = resources.files('warp_scan').joinpath('ranges.yaml').read_text(encoding='utf-8')
        return yaml.safe_load(content) or {}
    except (ImportError, AttributeError, FileNotFoundError) as e:
        logger.debug(f"importlib.resources failed: {e}")

    return _read_yaml(Path(__file__).parent.parent / 'ranges.yaml')


def load_scan_config(path: Optional[Union[str, Path]] = None, **overrides: Any) -> ScanConfig:
    """
    Build a validated scan configuration.

    Args:
        path: Optional user YAML file merged over the packaged defaults
        **overrides: Explicit settings; None values are ignored

    Returns:
        Validated ScanConfig
    """
    data = load_default_config_data()

    if path:
        logger.info(f"Loading scan configuration from {path}")
        data.update(_read_yaml(path))

    for env_name, (key, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw:
            try:
                data[key] = convert(raw)
            except ValueError as e:
                raise ScanConfigError(f"{env_name} is invalid: {e}") from e

    data.update({key: value for key, value in overrides.items() if value is not None})

    return ScanConfig.from_dict(data).validate()
