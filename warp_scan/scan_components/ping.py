"""
System Ping - ICMP round-trip collaborator

Wraps the platform ``ping`` binary. Any object with a
``ping_rtt(address) -> Optional[float]`` method can stand in for it.
"""

import logging
import math
import platform
import re
import subprocess
from typing import List, Optional

logger = logging.getLogger(__name__)

IS_WINDOWS = platform.system().lower().startswith("win")

_PING_TIME_RE = re.compile(r"time[=<]\s*(\d+(?:\.\d+)?)\s*ms", re.IGNORECASE)


def parse_ping_output(output: str) -> Optional[float]:
    """Extract the round-trip time in milliseconds from ping output"""
    match = _PING_TIME_RE.search(output)
    if match:
        return float(match.group(1))
    return None


class SystemPing:
    """Single-echo ping through the operating system's ping command"""

    def __init__(self, timeout: float = 1.0, binary: str = "ping"):
        self.timeout = timeout
        self.binary = binary

    def _command(self, address: str) -> List[str]:
        if IS_WINDOWS:
            return [self.binary, "-n", "1", "-w", str(int(self.timeout * 1000)), address]
        return [self.binary, "-c", "1", "-W", str(max(1, int(math.ceil(self.timeout)))), address]

    def ping_rtt(self, address: str) -> Optional[float]:
        """
        Ping an address once.

        Returns:
            Round-trip time in milliseconds, or None if unreachable
        """
        try:
            completed = subprocess.run(
                self._command(address),
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                timeout=self.timeout + 2,
            )
        except subprocess.TimeoutExpired:
            logger.debug(f"ping {address} timed out")
            return None
        except FileNotFoundError:
            logger.warning(f"ping binary '{self.binary}' not found, treating {address} as unreachable")
            return None

        if completed.returncode != 0:
            return None
        return parse_ping_output(completed.stdout)
