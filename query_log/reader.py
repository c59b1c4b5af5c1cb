"""Source resolution — glob expansion and lazy file openers."""

import contextlib
import glob
import logging
import sys
from functools import partial

logger = logging.getLogger(__name__)

STDIN_PATH = "-"


def expand_paths(raw_paths: list[str]) -> list[str]:
    """Expand globs and deduplicate, preserving argument order.

    Plain paths are passed through unchecked: a missing file is reported
    when its source is read. Raises FileNotFoundError if nothing remains.
    """
    expanded = []
    seen = set()

    for raw in raw_paths:
        if raw != STDIN_PATH and any(c in raw for c in ("*", "?", "[")):
            matches = sorted(glob.glob(raw))
            if not matches:
                logger.warning("No files match %s", raw)
            candidates = matches
        else:
            candidates = [raw]
        for path in candidates:
            if path not in seen:
                seen.add(path)
                expanded.append(path)

    if not expanded:
        raise FileNotFoundError("No query log files found matching the given paths")

    return expanded


def open_source(path: str):
    """Open *path* for line reading; ``-`` is standard input, left open afterwards."""
    if path == STDIN_PATH:
        return contextlib.nullcontext(sys.stdin)
    return open(path, "r", encoding="utf-8", errors="replace")


def file_sources(paths: list[str]) -> dict:
    """Map each path to a zero-argument opener for the aggregator."""
    return {path: partial(open_source, path) for path in paths}
