"""
Probe Pool - bounded-concurrency scheduler

Every candidate is probed exactly once on a fixed-size thread pool; run()
returns only after all probes have completed or timed out.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Mapping, Optional, Sequence

from .candidates import Candidate, Protocol
from .prober import EndpointProber
from .results import ResultAggregator, ResultSet

logger = logging.getLogger(__name__)

# progress(done, succeeded, total)
ProgressCallback = Callable[[int, int, int], None]


class ProbePool:
    """Fans candidates out to a fixed number of worker threads"""

    def __init__(self, prober: Optional[EndpointProber] = None, concurrency: int = 200):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.prober = prober or EndpointProber()
        self.concurrency = concurrency
        self._lock = threading.Lock()
        self.completed = 0
        self.succeeded = 0

    def run(self, candidates: Sequence[Candidate], timeouts: Mapping[Protocol, float],
            progress: Optional[ProgressCallback] = None) -> ResultSet:
        """
        Probe every candidate and collect the live ones.

        Args:
            candidates: Candidates to probe, each exactly once
            timeouts: Per-protocol probe timeout in seconds
            progress: Optional observer called after each probe

        Returns:
            Frozen ResultSet of successful outcomes
        """
        for protocol in {candidate.protocol for candidate in candidates}:
            timeout = timeouts.get(protocol)
            if timeout is None or timeout <= 0:
                raise ValueError(f"a positive timeout is required for {protocol.value} candidates")

        aggregator = ResultAggregator()
        total = len(candidates)
        with self._lock:
            self.completed = 0
            self.succeeded = 0

        def work(candidate: Candidate):
            try:
                outcome = self.prober.probe(candidate, timeouts[candidate.protocol])
                recorded = aggregator.record(outcome)
            except Exception as e:
                logger.error(f"Probe of {candidate.endpoint} raised unexpectedly: {str(e)}")
                recorded = False

            with self._lock:
                self.completed += 1
                if recorded:
                    self.succeeded += 1
                if progress:
                    try:
                        progress(self.completed, self.succeeded, total)
                    except Exception as e:
                        logger.warning(f"Progress observer raised: {str(e)}")

        start_time = time.time()
        logger.info(f"Probing {total} candidates with {self.concurrency} workers")

        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="warp-probe") as executor:
            futures = [executor.submit(work, candidate) for candidate in candidates]

        for future in futures:
            future.result()

        result_set = aggregator.freeze()
        logger.info(f"Probed {total} candidates in {round(time.time() - start_time, 2)}s: "
                    f"{len(result_set.tcp)} TCP and {len(result_set.udp)} UDP endpoints alive")
        return result_set
