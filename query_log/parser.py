"""Query log parser — line regex + per-identifier open/progress/close state machine."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from query_log.command import DEFAULT_DECODER, CommandDecoder
from query_log.statistic import Statistic

logger = logging.getLogger(__name__)

LINE_PATTERN = re.compile(
    r"^(\d{4})-(\d\d)-(\d\d) (\d\d):(\d\d):(\d\d)\.(\d+)\|(.+?)\|([>:<])(.*)"
)
PROGRESS_PATTERN = re.compile(r"^(\d+) (.*)")
CLOSE_PATTERN = re.compile(r"^(\d+) rc=(-?\d+)")

OPEN = ">"
PROGRESS = ":"
CLOSE = "<"


@dataclass(frozen=True)
class LogLine:
    timestamp: datetime
    context_id: str
    marker: str
    payload: str


def parse_timestamp(year, month, day, hour, minute, second, fraction) -> datetime:
    """Build a naive local datetime; *fraction* is the digits after the dot."""
    microsecond = int(fraction[:6].ljust(6, "0"))
    return datetime(
        int(year), int(month), int(day),
        int(hour), int(minute), int(second), microsecond,
    )


def parse_line(line: str) -> LogLine | None:
    """Parse a single query log line. Returns None for lines outside the grammar."""
    match = LINE_PATTERN.match(line)
    if not match:
        return None

    *time_parts, context_id, marker, payload = match.groups()
    try:
        timestamp = parse_timestamp(*time_parts)
    except ValueError:
        return None

    return LogLine(
        timestamp=timestamp,
        context_id=context_id,
        marker=marker,
        payload=payload.strip(),
    )


class QueryLogParser:
    """Assembles complete Statistic records from one stream of query log lines.

    Each instance owns its in-flight table; use one parser per stream.
    """

    def __init__(self, decoder: CommandDecoder = DEFAULT_DECODER):
        self._decoder = decoder
        self.lines = 0
        self.skipped_lines = 0
        self.orphan_events = 0
        self.dropped_requests = 0

    def parse(self, lines: Iterable[str], source: str = "") -> list[Statistic]:
        """Consume *lines* and return finished statistics in close order."""
        self.lines = 0
        self.skipped_lines = 0
        self.orphan_events = 0
        statistics: list[Statistic] = []
        in_flight: dict[str, Statistic] = {}

        for line in lines:
            self.lines += 1
            log_line = parse_line(line)
            if log_line is None:
                self.skipped_lines += 1
                continue
            self._parse_log_line(log_line, statistics, in_flight)

        self.dropped_requests = len(in_flight)
        logger.debug(
            "Parsed %s: %d lines, %d statistics, %d skipped, %d orphan events, %d unfinished",
            source or "<stream>", self.lines, len(statistics),
            self.skipped_lines, self.orphan_events, self.dropped_requests,
        )
        return statistics

    def _parse_log_line(
        self,
        log_line: LogLine,
        statistics: list[Statistic],
        in_flight: dict[str, Statistic],
    ) -> None:
        context_id = log_line.context_id

        if log_line.marker == OPEN:
            if context_id in in_flight:
                logger.debug("Request %s reopened before close, discarding partial record", context_id)
            in_flight[context_id] = Statistic(
                context_id=context_id,
                start_time=log_line.timestamp,
                raw_command=log_line.payload,
                decoder=self._decoder,
            )

        elif log_line.marker == PROGRESS:
            match = PROGRESS_PATTERN.match(log_line.payload)
            if not match:
                self.skipped_lines += 1
                return
            statistic = in_flight.get(context_id)
            if statistic is None:
                self.orphan_events += 1
                return
            statistic.add_trace(int(match.group(1)), match.group(2).strip())

        elif log_line.marker == CLOSE:
            match = CLOSE_PATTERN.match(log_line.payload)
            if not match:
                self.skipped_lines += 1
                return
            statistic = in_flight.pop(context_id, None)
            if statistic is None:
                self.orphan_events += 1
                return
            statistic.finish(int(match.group(1)), int(match.group(2)))
            statistics.append(statistic)
