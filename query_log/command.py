"""Command decoder — turns a logged command string into a structured command.

Two spellings show up in query logs:

  URI form:           /d/select.json?table=Entries&filter=_key%20%3D%3D%20%22x%22
  Command-line form:  select --table Entries --filter '_key == "x"'

Both decode to the same ``Command`` (or a registered subclass of it).
"""

import logging
import shlex
from types import MappingProxyType
from typing import Mapping
from urllib.parse import unquote_plus

logger = logging.getLogger(__name__)

PATH_PREFIX = "/d/"
OUTPUT_TYPE_KEY = "output_type"

# Boolean connectives that separate top-level filter conditions
CONNECTIVES = ("&&", "&!", "||")


class Command:
    """Base decoded command: a name plus a flat parameter map."""

    # Ordered names for positional arguments in the command-line form
    ARGUMENT_NAMES: tuple[str, ...] = ()

    def __init__(self, name: str, parameters: dict[str, str]):
        self.name = name
        self.parameters = parameters

    def __eq__(self, other):
        return (
            type(self) is type(other)
            and self.name == other.name
            and self.parameters == other.parameters
        )

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r}, parameters={self.parameters!r})"


class SelectCommand(Command):
    ARGUMENT_NAMES = (
        "table",
        "match_columns",
        "query",
        "filter",
        "scorer",
        "sortby",
        "output_columns",
        "offset",
        "limit",
        "drilldown",
        "drilldown_sortby",
        "drilldown_output_columns",
        "drilldown_offset",
        "drilldown_limit",
        "cache",
        "match_escalation_threshold",
    )

    @property
    def sortby(self) -> str | None:
        return self.parameters.get("sortby")

    @property
    def scorer(self) -> str | None:
        return self.parameters.get("scorer")

    @property
    def output_columns(self) -> str | None:
        return self.parameters.get("output_columns")

    @property
    def conditions(self) -> list[str]:
        """Top-level conditions of the ``filter`` parameter, in order."""
        filter_expression = self.parameters.get("filter")
        if not filter_expression:
            return []
        return [_trim_condition(c) for c in split_conditions(filter_expression)]


DEFAULT_COMMANDS: Mapping[str, type[Command]] = MappingProxyType({
    "select": SelectCommand,
    "search": SelectCommand,
})


def split_conditions(expression: str) -> list[str]:
    """Split *expression* on ``&&``, ``&!`` and ``||`` outside parentheses and quotes."""
    pieces = []
    depth = 0
    quote = None
    start = 0
    i = 0
    while i < len(expression):
        char = expression[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif depth == 0 and expression[i:i + 2] in CONNECTIVES:
            pieces.append(expression[start:i])
            i += 2
            start = i
            continue
        i += 1
    pieces.append(expression[start:])
    return pieces


def _trim_condition(condition: str) -> str:
    condition = condition.strip()
    if condition.startswith("(") and condition.endswith(")"):
        inner = condition[1:-1]
        # A nested parenthesis means the outer pair may belong to a group
        if "(" not in inner and ")" not in inner:
            condition = inner.strip()
    return condition


def parse_query_string(query: str) -> dict[str, str]:
    """Decode ``k1=v1&k2=v2`` with form-style unescaping. Last key wins."""
    parameters = {}
    for piece in query.split("&"):
        if not piece:
            continue
        key, _, value = piece.partition("=")
        parameters[unquote_plus(key)] = unquote_plus(value)
    return parameters


def _split_name(path: str) -> tuple[str, str | None]:
    if path.startswith(PATH_PREFIX):
        path = path[len(PATH_PREFIX):]
    name, dot, output_type = path.partition(".")
    return name, (output_type if dot else None)


def _tokenize(command_line: str) -> list[str]:
    try:
        return shlex.split(command_line)
    except ValueError:
        logger.debug("Unbalanced quotes in command, splitting on whitespace: %s", command_line)
        return command_line.split()


class CommandDecoder:
    """Decodes raw command strings, dispatching on the command name.

    The name → class mapping is fixed at construction; pass a different
    mapping to recognize additional command types.
    """

    def __init__(self, commands: Mapping[str, type[Command]] = DEFAULT_COMMANDS):
        self._commands = MappingProxyType(dict(commands))

    @property
    def commands(self) -> Mapping[str, type[Command]]:
        return self._commands

    def decode(self, raw_command: str) -> Command:
        raw_command = raw_command.strip()
        path, separator, query = raw_command.partition("?")
        if separator and not any(c.isspace() for c in path):
            name, output_type = _split_name(path)
            parameters = parse_query_string(query)
            command_class = self._commands.get(name, Command)
        else:
            tokens = _tokenize(raw_command) or [""]
            name, output_type = _split_name(tokens[0])
            command_class = self._commands.get(name, Command)
            parameters = self._parse_arguments(tokens[1:], command_class.ARGUMENT_NAMES)

        if output_type:
            parameters[OUTPUT_TYPE_KEY] = output_type
        return command_class(name, parameters)

    @staticmethod
    def _parse_arguments(tokens: list[str], argument_names: tuple[str, ...]) -> dict[str, str]:
        parameters = {}
        positional = iter(argument_names)
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token.startswith("--") and len(token) > 2:
                value = tokens[i + 1] if i + 1 < len(tokens) else ""
                parameters[token[2:]] = value
                i += 2
                continue
            name = next(positional, None)
            while name is not None and name in parameters:
                name = next(positional, None)
            if name is not None:
                parameters[name] = token
            else:
                logger.debug("Dropping extra positional argument: %s", token)
            i += 1
        return parameters


DEFAULT_DECODER = CommandDecoder()
