"""
Candidate Generator - (address, port, protocol) triples to probe

Samples addresses from static range specifications and crosses them with the
configured port lists. Seed addresses are always emitted first so they are
probed earliest.
"""

import ipaddress
import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Set, Tuple

logger = logging.getLogger(__name__)


class Protocol(str, Enum):
    """Transport protocol of a candidate endpoint"""
    TCP = "tcp"
    UDP = "udp"


@dataclass(frozen=True)
class Candidate:
    """One (address, port, protocol) triple eligible for probing"""
    address: str
    port: int
    protocol: Protocol

    @property
    def endpoint(self) -> str:
        return format_endpoint(self.address, self.port)


@dataclass(frozen=True)
class AddressRange:
    """
    Address range specification.

    ``prefix`` is one of:
      - an IPv4 dotted prefix such as ``"162.159.192."``
      - an IPv6 prefix ending in ``:`` such as ``"2606:4700:d0::"``
      - a CIDR network such as ``"188.114.96.0/24"`` or ``"2606:4700:d1::/48"``

    ``count`` random addresses are drawn from the range.
    """
    prefix: str
    count: int


def format_endpoint(address: str, port: int) -> str:
    """Render ``address:port``, bracketing IPv6 literals"""
    if ":" in address:
        return f"[{address}]:{port}"
    return f"{address}:{port}"


def parse_range(spec: AddressRange) -> Tuple[int, int, int]:
    """
    Resolve a range specification to ``(version, base, size)``.

    Every address in the range is ``base + offset`` for ``0 <= offset < size``.
    Raises ValueError for a malformed prefix.
    """
    prefix = spec.prefix.strip()
    if not prefix:
        raise ValueError("empty address range prefix")

    if "/" in prefix:
        network = ipaddress.ip_network(prefix, strict=False)
        return network.version, int(network.network_address), network.num_addresses

    if ":" in prefix:
        head = prefix.rstrip(":")
        groups = head.split(":") if head else []
        missing = 8 - len(groups)
        if missing < 1:
            raise ValueError(f"IPv6 prefix leaves no room for a random suffix: {spec.prefix}")
        base = ipaddress.IPv6Address(":".join(groups + ["0"] * missing))
        return 6, int(base), 65536 ** missing

    head = prefix.rstrip(".")
    octets = head.split(".") if head else []
    missing = 4 - len(octets)
    if missing < 1:
        raise ValueError(f"IPv4 prefix leaves no room for a random suffix: {spec.prefix}")
    base = ipaddress.IPv4Address(".".join(octets + ["0"] * missing))
    return 4, int(base), 256 ** missing


def _to_address(version: int, value: int) -> str:
    if version == 4:
        return str(ipaddress.IPv4Address(value))
    return str(ipaddress.IPv6Address(value))


class CandidateGenerator:
    """Builds a deduplicated candidate sequence from range and port configuration"""

    def __init__(self,
                 ipv4_ranges: Sequence[AddressRange] = (),
                 ipv6_ranges: Sequence[AddressRange] = (),
                 tcp_ports: Sequence[int] = (),
                 udp_ports: Sequence[int] = (),
                 seed_addresses: Sequence[str] = (),
                 rng: Optional[random.Random] = None):
        self.ipv4_ranges = list(ipv4_ranges)
        self.ipv6_ranges = list(ipv6_ranges)
        self.tcp_ports = list(tcp_ports)
        self.udp_ports = list(udp_ports)
        self.seed_addresses = list(seed_addresses)
        self.rng = rng or random.Random(time.perf_counter_ns())

    def sample_addresses(self, spec: AddressRange) -> List[str]:
        """Draw up to ``spec.count`` distinct addresses from one range"""
        version, base, size = parse_range(spec)

        if spec.count >= size:
            offsets = list(range(size))
            self.rng.shuffle(offsets)
        else:
            offsets = []
            seen: Set[int] = set()
            while len(offsets) < spec.count:
                offset = self.rng.randrange(size)
                if offset in seen:
                    continue
                seen.add(offset)
                offsets.append(offset)

        return [_to_address(version, base + offset) for offset in offsets]

    def addresses(self) -> List[str]:
        """Seed addresses first, then sampled addresses, without repeats"""
        ordered = []
        seen = set()

        def add(values: Iterable[str]):
            for value in values:
                normalized = str(ipaddress.ip_address(value.strip()))
                if normalized not in seen:
                    seen.add(normalized)
                    ordered.append(normalized)

        add(self.seed_addresses)
        for spec in self.ipv4_ranges + self.ipv6_ranges:
            add(self.sample_addresses(spec))

        return ordered

    def generate(self) -> List[Candidate]:
        """Produce the candidate sequence for one run"""
        candidates = []
        seen: Set[Candidate] = set()

        for address in self.addresses():
            for protocol, ports in ((Protocol.TCP, self.tcp_ports), (Protocol.UDP, self.udp_ports)):
                for port in ports:
                    candidate = Candidate(address=address, port=int(port), protocol=protocol)
                    if candidate in seen:
                        continue
                    seen.add(candidate)
                    candidates.append(candidate)

        logger.info(f"Generated {len(candidates)} candidates "
                    f"({len(self.seed_addresses)} seed addresses, "
                    f"{len(self.ipv4_ranges)} IPv4 ranges, {len(self.ipv6_ranges)} IPv6 ranges)")
        return candidates

    def candidates_for(self, addresses: Sequence[str]) -> List[Candidate]:
        """Cross an explicit address list with the configured ports"""
        generator = CandidateGenerator(
            tcp_ports=self.tcp_ports,
            udp_ports=self.udp_ports,
            seed_addresses=addresses,
            rng=self.rng,
        )
        return generator.generate()
