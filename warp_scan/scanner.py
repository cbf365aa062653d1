"""
WARP Endpoint Scan - latency-ranked endpoint discovery

Generates candidates from the configured address ranges, optionally
pre-filters addresses by ICMP ping, probes every candidate on a bounded
worker pool and ranks the live endpoints by latency.
"""

import ipaddress
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .scan_components.candidates import Candidate, Protocol
from .scan_components.config_helper import ScanConfig, load_scan_config
from .scan_components.ping import SystemPing
from .scan_components.pool import ProbePool, ProgressCallback
from .scan_components.prober import WARP_HANDSHAKE, EndpointProber
from .scan_components.ranking import Ranking, rank

# Configure logger for this module
logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """Outcome of one scan run"""
    ranking: Ranking
    candidates_probed: int
    addresses_scanned: int
    timestamp: str
    duration_seconds: float
    ping_rtts: Dict[str, float] = field(default_factory=dict)

    @property
    def result_type(self) -> str:
        return "no_results" if self.ranking.empty else "success"

    def to_dict(self, top: Optional[int] = None) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "data": self.ranking.to_dict(top=top),
            "error": None,
            "meta": {
                "candidates_probed": self.candidates_probed,
                "addresses_scanned": self.addresses_scanned,
                "tcp_found": len(self.ranking.tcp),
                "udp_found": len(self.ranking.udp),
                "timestamp": self.timestamp,
                "duration_seconds": self.duration_seconds,
            },
            "result_type": self.result_type,
        }


class EndpointScanner:
    """One-pass endpoint scanner over a validated ScanConfig"""

    def __init__(self, config: ScanConfig, prober: Optional[EndpointProber] = None,
                 ping=None, rng=None):
        """
        Initialize the scanner.

        Args:
            config: Scan configuration, validated here before any probing
            prober: Probe executor (defaults to EndpointProber with the configured payload)
            ping: Object with ping_rtt(address) used by the ping pre-filter
            rng: Random source for address sampling
        """
        self.config = config.validate()
        self.prober = prober or EndpointProber(handshake_payload=config.handshake_payload or WARP_HANDSHAKE)
        self.ping = ping
        self.rng = rng

    def scan(self, progress: Optional[ProgressCallback] = None) -> ScanReport:
        """Generate candidates from the configured ranges and probe them all"""
        generator = self.config.generator(rng=self.rng)
        addresses = generator.addresses()
        logger.info(f"Starting endpoint scan over {len(addresses)} addresses")

        ping_rtts = {}
        if self.config.ping_prefilter:
            addresses, ping_rtts = self._prefilter_by_ping(addresses)

        candidates = generator.candidates_for(addresses)
        return self._run(candidates, progress, ping_rtts)

    def rescan(self, candidates: Sequence[Candidate],
               progress: Optional[ProgressCallback] = None) -> ScanReport:
        """Probe an explicit candidate subset, e.g. to retry unresolved endpoints"""
        return self._run(list(candidates), progress, {})

    def _run(self, candidates: List[Candidate], progress: Optional[ProgressCallback],
             ping_rtts: Dict[str, float]) -> ScanReport:
        start_time = time.time()
        timestamp = time.strftime("%Y-%m-%dT%H:%M:%S")

        pool = ProbePool(self.prober, concurrency=self.config.concurrency)
        result_set = pool.run(candidates, self.config.timeouts(), progress=progress)
        ranking = rank(result_set, ping_rtts)

        report = ScanReport(
            ranking=ranking,
            candidates_probed=len(candidates),
            addresses_scanned=len({candidate.address for candidate in candidates}),
            timestamp=timestamp,
            duration_seconds=round(time.time() - start_time, 2),
            ping_rtts=ping_rtts,
        )

        if ranking.empty:
            logger.info("No working endpoints found")
        else:
            for protocol in Protocol:
                best = ranking.best(protocol)
                if best:
                    logger.info(f"Best {protocol.value} endpoint: {best.endpoint} ({best.latency_ms:.2f} ms)")
        logger.info(f"Scan completed in {report.duration_seconds}s")
        return report

    def _prefilter_by_ping(self, addresses: List[str]) -> Tuple[List[str], Dict[str, float]]:
        """Drop addresses that do not answer ICMP; seed addresses always pass"""
        ping = self.ping or SystemPing()
        seeds = {str(ipaddress.ip_address(address.strip())) for address in self.config.seed_addresses}

        kept_seeds = [address for address in addresses if address in seeds]
        to_ping = [address for address in addresses if address not in seeds]

        def ping_rtt(address: str) -> Optional[float]:
            try:
                return ping.ping_rtt(address)
            except Exception as e:
                logger.warning(f"Ping of {address} raised unexpectedly: {str(e)}")
                return None

        with ThreadPoolExecutor(max_workers=self.config.concurrency, thread_name_prefix="warp-ping") as executor:
            rtts = list(executor.map(ping_rtt, to_ping))

        ping_rtts = {address: rtt for address, rtt in zip(to_ping, rtts) if rtt is not None}
        reachable = sorted(ping_rtts, key=lambda address: ping_rtts[address])
        if self.config.ping_limit is not None:
            reachable = reachable[:self.config.ping_limit]

        logger.info(f"Ping pre-filter kept {len(reachable)} of {len(to_ping)} addresses "
                    f"(plus {len(kept_seeds)} seeds)")
        return kept_seeds + reachable, ping_rtts


def scan_endpoints(config_path: Optional[str] = None, top: Optional[int] = None,
                   **overrides: Any) -> Dict[str, Any]:
    """
    Convenience function for a single scan.

    Args:
        config_path: Optional YAML file merged over the packaged defaults
        top: Limit each protocol's result list to this many entries
        **overrides: Configuration overrides (see ScanConfig)

    Returns:
        Scan report as dictionary
    """
    config = load_scan_config(config_path, **overrides)
    scanner = EndpointScanner(config)
    report = scanner.scan()
    logger.debug(f"scan_endpoints returning {report.result_type} report")
    return report.to_dict(top=top)
