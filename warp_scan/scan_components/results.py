"""
Result Aggregator - thread-safe collection of successful probes
"""

import threading
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .candidates import Protocol
from .prober import ProbeOutcome


@dataclass(frozen=True)
class ResultSet:
    """Successful outcomes of a finished run, in discovery order"""
    tcp: Tuple[ProbeOutcome, ...] = ()
    udp: Tuple[ProbeOutcome, ...] = ()

    def for_protocol(self, protocol: Protocol) -> Tuple[ProbeOutcome, ...]:
        return self.tcp if protocol is Protocol.TCP else self.udp

    def __len__(self) -> int:
        return len(self.tcp) + len(self.udp)


class ResultAggregator:
    """Collects successes from concurrent workers, partitioned by protocol"""

    def __init__(self):
        self._lock = threading.Lock()
        self._outcomes: Dict[Protocol, List[ProbeOutcome]] = {
            Protocol.TCP: [],
            Protocol.UDP: [],
        }

    def record(self, outcome: ProbeOutcome) -> bool:
        """Record a successful outcome; failures are ignored. Returns True if recorded."""
        if not outcome.success:
            return False
        with self._lock:
            self._outcomes[outcome.candidate.protocol].append(outcome)
        return True

    def freeze(self) -> ResultSet:
        """Snapshot the collected outcomes as an immutable ResultSet"""
        with self._lock:
            return ResultSet(
                tcp=tuple(self._outcomes[Protocol.TCP]),
                udp=tuple(self._outcomes[Protocol.UDP]),
            )
