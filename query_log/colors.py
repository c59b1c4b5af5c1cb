"""ANSI color helpers for the console report."""

import os
import re

# SGR codes: bold white text on a colored background
COLOR_SCHEMA = {
    "elapsed": "\033[37;1;42m",   # green
    "time": "\033[37;1;46m",      # cyan
    "slow": "\033[37;1;41m",      # red
}
RESET = "\033[0m"

_COLOR_TERM = re.compile(r"term(?:-color)?$")


def colorize(text: str, schema_name: str) -> str:
    return f"{COLOR_SCHEMA[schema_name]}{text}{RESET}"


def guess_color_availability(output, environ=None) -> bool:
    """True when *output* is a terminal that is likely to understand colors."""
    if environ is None:
        environ = os.environ
    isatty = getattr(output, "isatty", None)
    if isatty is None or not isatty():
        return False
    term = environ.get("TERM", "")
    if _COLOR_TERM.search(term) or term == "screen":
        return True
    return environ.get("EMACS") == "t"
