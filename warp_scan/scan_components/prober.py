"""
Endpoint Prober - single bounded liveness check per candidate

TCP: an established connection is proof of life.
UDP: connect() only binds a local socket, so a handshake packet is sent and
at least one byte must come back before the deadline.
"""

import logging
import socket
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .candidates import Candidate, Protocol

logger = logging.getLogger(__name__)

# 16-byte control packet answered by WARP endpoints
WARP_HANDSHAKE = bytes.fromhex("013cbdafb4135cac96a29484d7a0175a")

RECV_BUFFER = 2048


class FailureReason(str, Enum):
    """Why a probe did not confirm a live endpoint"""
    TIMEOUT = "timeout"
    CONNECT_ERROR = "connect_error"
    HANDSHAKE_WRITE_ERROR = "handshake_write_error"
    HANDSHAKE_READ_ERROR = "handshake_read_error"
    HANDSHAKE_TIMEOUT = "handshake_timeout"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one probe attempt"""
    candidate: Candidate
    success: bool
    latency_ms: Optional[float] = None
    failure_reason: Optional[FailureReason] = None

    @classmethod
    def succeeded(cls, candidate: Candidate, latency_ms: float) -> "ProbeOutcome":
        return cls(candidate=candidate, success=True, latency_ms=latency_ms)

    @classmethod
    def failed(cls, candidate: Candidate, reason: FailureReason) -> "ProbeOutcome":
        return cls(candidate=candidate, success=False, failure_reason=reason)


class EndpointProber:
    """Opens one connection per candidate and measures its latency"""

    def __init__(self, handshake_payload: bytes = WARP_HANDSHAKE):
        if not handshake_payload:
            raise ValueError("handshake payload must not be empty")
        self.handshake_payload = handshake_payload

    def probe(self, candidate: Candidate, timeout: float) -> ProbeOutcome:
        """
        Probe a single candidate.

        Args:
            candidate: Endpoint to probe
            timeout: Overall deadline in seconds for the network operations

        Returns:
            ProbeOutcome; failures are returned, never raised
        """
        if candidate.protocol is Protocol.TCP:
            outcome = self._probe_tcp(candidate, timeout)
        else:
            outcome = self._probe_udp(candidate, timeout)

        if outcome.success:
            logger.debug(f"{candidate.protocol.value} {candidate.endpoint} alive in {outcome.latency_ms:.1f}ms")
        else:
            logger.debug(f"{candidate.protocol.value} {candidate.endpoint} failed: {outcome.failure_reason.value}")
        return outcome

    def _probe_tcp(self, candidate: Candidate, timeout: float) -> ProbeOutcome:
        start = time.perf_counter()
        try:
            sock = socket.create_connection((candidate.address, candidate.port), timeout=timeout)
        except socket.timeout:
            return ProbeOutcome.failed(candidate, FailureReason.TIMEOUT)
        except OSError:
            return ProbeOutcome.failed(candidate, FailureReason.CONNECT_ERROR)

        latency_ms = (time.perf_counter() - start) * 1000.0
        sock.close()
        return ProbeOutcome.succeeded(candidate, latency_ms)

    def _probe_udp(self, candidate: Candidate, timeout: float) -> ProbeOutcome:
        deadline = time.perf_counter() + timeout
        family = socket.AF_INET6 if ":" in candidate.address else socket.AF_INET

        try:
            sock = socket.socket(family, socket.SOCK_DGRAM)
        except OSError:
            return ProbeOutcome.failed(candidate, FailureReason.CONNECT_ERROR)

        with sock:
            sock.settimeout(timeout)
            try:
                sock.connect((candidate.address, candidate.port))
            except socket.timeout:
                return ProbeOutcome.failed(candidate, FailureReason.TIMEOUT)
            except OSError:
                return ProbeOutcome.failed(candidate, FailureReason.CONNECT_ERROR)

            start = time.perf_counter()
            try:
                sock.send(self.handshake_payload)
            except OSError:
                return ProbeOutcome.failed(candidate, FailureReason.HANDSHAKE_WRITE_ERROR)

            remaining = deadline - time.perf_counter()
            if remaining <= 0:
                return ProbeOutcome.failed(candidate, FailureReason.HANDSHAKE_TIMEOUT)
            sock.settimeout(remaining)

            try:
                data = sock.recv(RECV_BUFFER)
            except socket.timeout:
                return ProbeOutcome.failed(candidate, FailureReason.HANDSHAKE_TIMEOUT)
            except OSError:
                return ProbeOutcome.failed(candidate, FailureReason.HANDSHAKE_READ_ERROR)

            latency_ms = (time.perf_counter() - start) * 1000.0

        if not data:
            return ProbeOutcome.failed(candidate, FailureReason.HANDSHAKE_READ_ERROR)
        return ProbeOutcome.succeeded(candidate, latency_ms)
