"""Shared pytest fixtures for the query log test suite."""

from datetime import datetime

import pytest

from query_log.statistic import Statistic


def make_statistic(
    context_id="id",
    start_time=datetime(2024, 1, 1, 0, 0, 0),
    raw_command="/d/select?table=Entries",
    trace=(),
    elapsed=1_000_000,
    return_code=0,
) -> Statistic:
    statistic = Statistic(context_id=context_id, start_time=start_time, raw_command=raw_command)
    for offset, label in trace:
        statistic.add_trace(offset, label)
    statistic.finish(elapsed, return_code)
    return statistic


@pytest.fixture()
def scenario_lines() -> list[str]:
    """One complete request: open, one progress, close."""
    return [
        "2024-01-01 00:00:00.000000|abc|>select --table Entries\n",
        "2024-01-01 00:00:00.010000|abc|:10000000 filter(0)\n",
        "2024-01-01 00:00:00.020000|abc|<20000000 rc=0\n",
    ]


@pytest.fixture()
def request_lines():
    """Factory for the lines of one complete request with *n_traces* progress lines."""
    def _lines(context_id: str, n_traces: int = 1, elapsed: int = 20_000_000) -> list[str]:
        lines = [f"2024-01-01 00:00:00.000000|{context_id}|>/d/select?table=Entries\n"]
        for i in range(n_traces):
            lines.append(f"2024-01-01 00:00:00.000001|{context_id}|:{(i + 1) * 1000} filter({i})\n")
        lines.append(f"2024-01-01 00:00:00.020000|{context_id}|<{elapsed} rc=0\n")
        return lines
    return _lines


@pytest.fixture()
def statistic_factory():
    return make_statistic
