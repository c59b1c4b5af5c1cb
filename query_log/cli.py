"""query-log-analyzer — rank and render requests reconstructed from query logs."""

import contextlib
import logging
import os
import sys
from argparse import SUPPRESS, ArgumentParser

from query_log.aggregator import Aggregator, SourceError
from query_log.config import ORDERS, load_config, load_yaml_config, parse_color
from query_log.reader import expand_paths, file_sources
from query_log.reporter import ConsoleReporter

logger = logging.getLogger(__name__)

COLOR_WHEN_OPTION = "--color-when"


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="query-log-analyzer",
        description="Reconstruct requests from query logs and show the slowest ones.",
    )
    parser.add_argument(
        "logs",
        nargs="+",
        help="Query log path(s) or glob pattern(s); '-' reads standard input",
    )
    parser.add_argument(
        "-n", "--n-entries",
        type=int,
        help="Show top N entries (default: 10)",
    )
    parser.add_argument(
        "--order",
        choices=ORDERS,
        help="Sort order; a leading '-' means descending (default: -elapsed)",
    )
    parser.add_argument(
        "--color",
        action="store_const",
        const=True,
        help="Enable color output; --color=WHEN takes auto, yes, no (default: auto)",
    )
    parser.add_argument(
        COLOR_WHEN_OPTION,
        dest="color",
        type=parse_color,
        help=SUPPRESS,
    )
    parser.add_argument(
        "--no-color",
        dest="color",
        action="store_const",
        const=False,
        help="Disable color output",
    )
    parser.add_argument(
        "--output",
        metavar="PATH",
        help="Output to PATH; '-' means standard output (default: -)",
    )
    parser.add_argument(
        "--slow-threshold",
        type=float,
        metavar="SECONDS",
        help="Flag spans taking at least SECONDS (default: 0.05)",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="YAML file with report settings",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log parsing details to stderr",
    )
    return parser


def parse_arguments(argv=None, parser: ArgumentParser | None = None):
    """Parse *argv*, accepting a color value only in the attached ``--color=WHEN`` form."""
    if parser is None:
        parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    rewritten = []
    for i, arg in enumerate(argv):
        if arg == "--":
            rewritten.extend(argv[i:])
            break
        if arg.startswith("--color="):
            rewritten.extend([COLOR_WHEN_OPTION, arg[len("--color="):]])
        else:
            rewritten.append(arg)
    return parser.parse_args(rewritten)


def resolve_log_level(name: str) -> int:
    """Map a level name to its number; unknown names fall back to WARNING."""
    level = getattr(logging, name.strip().upper(), None)
    if not isinstance(level, int):
        return logging.WARNING
    return level


@contextlib.contextmanager
def open_output(path: str):
    if path == "-":
        yield sys.stdout
    else:
        with open(path, "w", encoding="utf-8") as f:
            yield f


def run(args) -> int:
    """Aggregate the requested logs and write the report. Returns the exit code."""
    try:
        config = load_config(args, load_yaml_config(args.config))
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    try:
        paths = expand_paths(args.logs)
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 1

    exit_code = 0
    try:
        statistics = Aggregator().run(file_sources(paths))
    except SourceError as e:
        for name, error in e.failures.items():
            print(f"Error: cannot read {name}: {error}", file=sys.stderr)
        statistics = e.statistics
        exit_code = 1

    try:
        with open_output(config.output) as output:
            ConsoleReporter(config, output).report(statistics)
    except BrokenPipeError:
        raise
    except OSError as e:
        logger.error("Cannot write report to %s: %s", config.output, e)
        return 1
    return exit_code


def main(argv=None) -> int:
    args = parse_arguments(argv)

    if args.verbose:
        level = logging.DEBUG
    else:
        level = resolve_log_level(os.environ.get("QUERY_LOG_LOG_LEVEL", "WARNING"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s [query-log] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        return run(args)
    except KeyboardInterrupt:
        return 0
    except BrokenPipeError:
        return 0
