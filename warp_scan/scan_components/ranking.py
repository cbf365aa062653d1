"""
Ranker - ascending-latency ordering of successful probes

Sorting is stable, so equal latencies keep their discovery order.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .candidates import Protocol
from .results import ResultSet


@dataclass(frozen=True)
class RankedResult:
    """A live endpoint positioned within its protocol's latency ordering"""
    endpoint: str
    protocol: Protocol
    latency_ms: float
    ping_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["protocol"] = self.protocol.value
        data["latency_ms"] = round(self.latency_ms, 2)
        return data


@dataclass(frozen=True)
class Ranking:
    """Per-protocol ranked results"""
    tcp: Tuple[RankedResult, ...] = ()
    udp: Tuple[RankedResult, ...] = ()

    def results(self, protocol: Protocol) -> Tuple[RankedResult, ...]:
        return self.tcp if protocol is Protocol.TCP else self.udp

    def best(self, protocol: Protocol) -> Optional[RankedResult]:
        """Lowest-latency result, or None when nothing was found"""
        results = self.results(protocol)
        return results[0] if results else None

    def top_n(self, protocol: Protocol, n: int) -> Tuple[RankedResult, ...]:
        if n < 0:
            raise ValueError("n must be non-negative")
        return self.results(protocol)[:n]

    @property
    def empty(self) -> bool:
        return not self.tcp and not self.udp

    def to_dict(self, top: Optional[int] = None) -> Dict[str, Any]:
        data = {}
        for protocol in Protocol:
            results = self.results(protocol) if top is None else self.top_n(protocol, top)
            best = self.best(protocol)
            data[protocol.value] = {
                "best": best.to_dict() if best else None,
                "results": [result.to_dict() for result in results],
                "found": len(self.results(protocol)),
            }
        return data


def rank(result_set: ResultSet, ping_rtts: Optional[Mapping[str, float]] = None) -> Ranking:
    """
    Rank a finished result set by ascending latency.

    Args:
        result_set: Frozen aggregate from a completed run
        ping_rtts: Optional address -> RTT map attached for display only

    Returns:
        Ranking with one ordered tuple per protocol
    """
    ping_rtts = ping_rtts or {}

    def ordered(protocol: Protocol) -> Tuple[RankedResult, ...]:
        outcomes = sorted(result_set.for_protocol(protocol), key=lambda outcome: outcome.latency_ms)
        return tuple(
            RankedResult(
                endpoint=outcome.candidate.endpoint,
                protocol=protocol,
                latency_ms=outcome.latency_ms,
                ping_ms=ping_rtts.get(outcome.candidate.address),
            )
            for outcome in outcomes
        )

    return Ranking(tcp=ordered(Protocol.TCP), udp=ordered(Protocol.UDP))
