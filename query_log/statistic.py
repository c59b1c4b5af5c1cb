"""Request statistics — one reconstructed request and its trace."""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterator

from query_log.command import DEFAULT_DECODER, Command, CommandDecoder, SelectCommand

NANOSECONDS_PER_SECOND = 1_000_000_000


def nanoseconds_to_seconds(nanoseconds: int) -> float:
    return nanoseconds / NANOSECONDS_PER_SECOND


@dataclass(frozen=True)
class TraceInfo:
    index: int
    elapsed: int
    elapsed_in_seconds: float
    relative_elapsed: int
    relative_elapsed_in_seconds: float
    label: str
    context: str | None


@dataclass(eq=False)
class Statistic:
    """A single request: opened by ``>``, traced by ``:``, closed by ``<``.

    ``elapsed`` and ``return_code`` are written once by ``finish``; the
    decoded command is computed on first access and cached.
    """

    context_id: str
    start_time: datetime
    raw_command: str
    decoder: CommandDecoder = field(default=DEFAULT_DECODER, repr=False)
    trace: list[tuple[int, str]] = field(default_factory=list)
    elapsed: int | None = None
    return_code: int = 0
    _command: Command | None = field(default=None, init=False, repr=False)
    _command_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def add_trace(self, elapsed: int, label: str) -> None:
        self.trace.append((elapsed, label))

    def finish(self, elapsed: int, return_code: int) -> None:
        if self.elapsed is not None:
            raise ValueError(f"statistic {self.context_id!r} is already finished")
        self.elapsed = elapsed
        self.return_code = return_code

    @property
    def finished(self) -> bool:
        return self.elapsed is not None

    @property
    def command(self) -> Command:
        if self._command is None:
            with self._command_lock:
                if self._command is None:
                    self._command = self.decoder.decode(self.raw_command)
        return self._command

    def is_select_command(self) -> bool:
        return isinstance(self.command, SelectCommand)

    @property
    def elapsed_in_seconds(self) -> float:
        return nanoseconds_to_seconds(self.elapsed or 0)

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(microseconds=(self.elapsed or 0) // 1000)

    def each_trace_info(self) -> Iterator[TraceInfo]:
        """Yield one TraceInfo per trace entry, with per-span elapsed and context."""
        previous_elapsed = 0
        for i, (trace_elapsed, label) in enumerate(self.trace):
            relative_elapsed = trace_elapsed - previous_elapsed
            previous_elapsed = trace_elapsed
            yield TraceInfo(
                index=i,
                elapsed=trace_elapsed,
                elapsed_in_seconds=nanoseconds_to_seconds(trace_elapsed),
                relative_elapsed=relative_elapsed,
                relative_elapsed_in_seconds=nanoseconds_to_seconds(relative_elapsed),
                label=label,
                context=self._trace_context(label, i),
            )

    def _trace_context(self, label: str, i: int) -> str | None:
        command = self.command
        if not isinstance(command, SelectCommand):
            return label
        if label.startswith("filter("):
            conditions = command.conditions
            return conditions[i] if i < len(conditions) else None
        if label.startswith("sort("):
            return command.sortby
        if label.startswith("score("):
            return command.scorer
        if label.startswith("output("):
            return command.output_columns
        return label
