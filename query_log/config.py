"""Report configuration — frozen dataclass built from YAML, env vars, and CLI args."""

import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

ORDERS = ("elapsed", "-elapsed", "start-time", "-start-time")

_COLOR_VALUES = {
    "auto": "auto",
    "-": False,
    "no": False,
    "false": False,
    "+": True,
    "yes": True,
    "true": True,
}

# Environment variable → config field
ENV_VARS = {
    "QUERY_LOG_N_ENTRIES": "n_entries",
    "QUERY_LOG_ORDER": "order",
    "QUERY_LOG_SLOW_THRESHOLD": "slow_threshold",
    "QUERY_LOG_COLOR": "color",
    "QUERY_LOG_OUTPUT": "output",
}


def parse_color(value) -> bool | str:
    """Map a color setting to True, False, or "auto"."""
    if isinstance(value, bool):
        return value
    key = str(value).strip().lower()
    if key not in _COLOR_VALUES:
        raise ValueError(f"Invalid color setting: {value!r}")
    return _COLOR_VALUES[key]


@dataclass(frozen=True)
class ReportConfig:
    n_entries: int = 10
    order: str = "-elapsed"
    slow_threshold: float = 0.05
    color: bool | str = "auto"
    output: str = "-"

    def __post_init__(self):
        if self.order not in ORDERS:
            raise ValueError(f"Invalid order {self.order!r}, expected one of {', '.join(ORDERS)}")
        if self.slow_threshold < 0:
            raise ValueError(f"slow_threshold must be non-negative, got {self.slow_threshold}")


def load_yaml_config(path: str | None) -> dict:
    """Load report settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except OSError as e:
        raise ValueError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def _coerce(name: str, value):
    if name == "n_entries":
        return int(value)
    if name == "slow_threshold":
        return float(value)
    if name == "color":
        return parse_color(value)
    return str(value)


def load_config(cli_args=None, yaml_data: dict | None = None, environ=None) -> ReportConfig:
    """Build ReportConfig: defaults < YAML < environment < command line."""
    if environ is None:
        environ = os.environ
    settings = {}

    for name, value in (yaml_data or {}).items():
        key = name.replace("-", "_")
        if key in ReportConfig.__dataclass_fields__:
            settings[key] = _coerce(key, value)
        else:
            logger.warning("Ignoring unknown config key: %s", name)

    for var, key in ENV_VARS.items():
        if var in environ:
            settings[key] = _coerce(key, environ[var])

    for key in ReportConfig.__dataclass_fields__:
        value = getattr(cli_args, key, None)
        if value is not None:
            settings[key] = _coerce(key, value)

    return ReportConfig(**settings)
