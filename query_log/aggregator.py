"""Concurrent aggregation — one parser thread per source, merged under a lock."""

import logging
import threading
from typing import Callable, ContextManager, Iterable, Mapping

from query_log.command import DEFAULT_DECODER, CommandDecoder
from query_log.parser import QueryLogParser
from query_log.statistic import Statistic

logger = logging.getLogger(__name__)

Opener = Callable[[], ContextManager[Iterable[str]]]


class SourceError(Exception):
    """One or more sources could not be read.

    Raised only after every worker has finished; ``statistics`` holds what
    the remaining sources produced.
    """

    def __init__(self, failures: dict[str, Exception], statistics: list[Statistic]):
        self.failures = failures
        self.statistics = statistics
        names = ", ".join(f"{name} ({error})" for name, error in failures.items())
        super().__init__(f"Failed to read {len(failures)} source(s): {names}")


class StatisticsStore:
    """Thread-safe list of finished statistics.

    The lock is held for a whole batch, so one worker's records are never
    interleaved with another's.
    """

    def __init__(self):
        self._statistics: list[Statistic] = []
        self._lock = threading.Lock()

    def extend(self, batch: list[Statistic]) -> None:
        with self._lock:
            self._statistics.extend(batch)

    def snapshot(self) -> list[Statistic]:
        with self._lock:
            return list(self._statistics)

    def __len__(self) -> int:
        with self._lock:
            return len(self._statistics)


class Aggregator:
    """Runs one QueryLogParser per source; each ``run`` starts from an empty store."""

    def __init__(self, decoder: CommandDecoder = DEFAULT_DECODER):
        self._decoder = decoder

    def _worker(
        self,
        name: str,
        opener: Opener,
        store: StatisticsStore,
        failures: dict[str, Exception],
        failures_lock: threading.Lock,
    ) -> None:
        parser = QueryLogParser(self._decoder)
        try:
            with opener() as stream:
                statistics = parser.parse(stream, source=name)
        except Exception as e:
            logger.debug("Worker for %s failed: %s", name, e)
            with failures_lock:
                failures[name] = e
            return
        store.extend(statistics)
        logger.info("Collected %d statistics from %s", len(statistics), name)

    def run(self, sources: Mapping[str, Opener]) -> list[Statistic]:
        """Parse every source in its own thread and return the merged statistics.

        Blocks until all workers finish. Raises SourceError if any source
        failed; the other sources' results travel with the exception.
        """
        store = StatisticsStore()
        failures: dict[str, Exception] = {}
        failures_lock = threading.Lock()

        threads = []
        for name, opener in sources.items():
            t = threading.Thread(
                target=self._worker,
                args=(name, opener, store, failures, failures_lock),
                name=f"query-log-{name}",
            )
            threads.append(t)
            t.start()

        for t in threads:
            t.join()

        statistics = store.snapshot()
        logger.info("Aggregated %d statistics from %d source(s)", len(statistics), len(threads))
        if failures:
            raise SourceError(dict(failures), statistics)
        return statistics
