"""
WARP Endpoint Scan - latency-ranked endpoint discovery

Probes candidate (address, port, protocol) triples in the WARP anycast
ranges concurrently and ranks the live ones by latency.
"""

from .scanner import scan_endpoints, EndpointScanner, ScanReport
from .scan_components.candidates import Candidate, Protocol
from .scan_components.config_helper import ScanConfig, ScanConfigError, load_scan_config
from .scan_components.ranking import RankedResult, Ranking

__version__ = "0.1.0"
__all__ = [
    "scan_endpoints",
    "EndpointScanner",
    "ScanReport",
    "Candidate",
    "Protocol",
    "ScanConfig",
    "ScanConfigError",
    "load_scan_config",
    "RankedResult",
    "Ranking",
]
