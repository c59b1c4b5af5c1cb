"""Console reporter — sort, truncate, and render statistics with slow-span highlighting."""

import sys
from datetime import datetime
from typing import Iterable, TextIO

from query_log.colors import colorize, guess_color_availability
from query_log.config import ORDERS, ReportConfig
from query_log.statistic import Statistic, TraceInfo

TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def sort_statistics(statistics: Iterable[Statistic], order: str) -> list[Statistic]:
    """Stable sort by *order*; a leading ``-`` means descending."""
    if order not in ORDERS:
        raise ValueError(f"Invalid order {order!r}")
    descending = order.startswith("-")
    if order.lstrip("-") == "elapsed":
        key = lambda statistic: statistic.elapsed
    else:
        key = lambda statistic: statistic.start_time
    # sorted() keeps ties in input order even with reverse=True
    return sorted(statistics, key=key, reverse=descending)


def select_statistics(statistics: Iterable[Statistic], order: str, n_entries: int) -> list[Statistic]:
    """Top *n_entries* after sorting; n_entries <= 0 selects nothing."""
    if n_entries <= 0:
        return []
    return sort_statistics(statistics, order)[:n_entries]


def is_slow(seconds: float, threshold: float) -> bool:
    return seconds >= threshold


class ConsoleReporter:
    def __init__(self, config: ReportConfig, output: TextIO | None = None):
        self._config = config
        self._output = output if output is not None else sys.stdout
        if config.color == "auto":
            self._color = guess_color_availability(self._output)
        else:
            self._color = bool(config.color)

    def _colorize(self, text: str, schema_name: str) -> str:
        if not self._color:
            return text
        return colorize(text, schema_name)

    def _slow(self, seconds: float) -> bool:
        return is_slow(seconds, self._config.slow_threshold)

    def format_time(self, time: datetime) -> str:
        return self._colorize(time.strftime(TIME_FORMAT), "time")

    def format_heading(self, statistic: Statistic) -> str:
        formatted_elapsed = self._colorize(f"{statistic.elapsed_in_seconds:8.8f}", "elapsed")
        return "[%s-%s (%s)](%d): %s" % (
            self.format_time(statistic.start_time),
            self.format_time(statistic.end_time),
            formatted_elapsed,
            statistic.return_code,
            statistic.raw_command,
        )

    def format_trace(self, info: TraceInfo) -> str:
        slow = self._slow(info.relative_elapsed_in_seconds)
        formatted_elapsed = f"{info.relative_elapsed_in_seconds:8.8f}"
        if slow:
            formatted_elapsed = self._colorize(formatted_elapsed, "slow")
        line = " %2d) %s: %s" % (info.index + 1, formatted_elapsed, info.label)
        context = info.context
        if context:
            if slow:
                context = self._colorize(context, "slow")
            line += " " + context
        return line

    def format_statistic(self, statistic: Statistic, rank: int, digit: int) -> list[str]:
        lines = [f"{rank:0{digit}d}) {self.format_heading(statistic)}"]
        command = statistic.command
        lines.append(f"  name: <{command.name}>")
        lines.append("  parameters:")
        for key, value in command.parameters.items():
            lines.append(f"    <{key}>: <{value}>")
        for info in statistic.each_trace_info():
            lines.append(self.format_trace(info))
        return lines

    def report(self, statistics: Iterable[Statistic]) -> int:
        """Write the top entries to the output. Returns the number rendered."""
        selected = select_statistics(statistics, self._config.order, self._config.n_entries)
        digit = len(str(max(self._config.n_entries, 1)))
        for i, statistic in enumerate(selected):
            for line in self.format_statistic(statistic, i + 1, digit):
                self._output.write(line + "\n")
            self._output.write("\n")
        return len(selected)
