"""Tests for query_log/config.py — ReportConfig and its loaders."""

import dataclasses
from argparse import Namespace

import pytest

from query_log.config import ReportConfig, load_config, load_yaml_config, parse_color


# ── parse_color ──────────────────────────────────────────────────────

class TestParseColor:
    @pytest.mark.parametrize("value", ["+", "yes", "true", "TRUE", True])
    def test_enabled(self, value):
        assert parse_color(value) is True

    @pytest.mark.parametrize("value", ["-", "no", "false", False])
    def test_disabled(self, value):
        assert parse_color(value) is False

    def test_auto(self):
        assert parse_color("auto") == "auto"

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_color("sometimes")


# ── ReportConfig ─────────────────────────────────────────────────────

class TestReportConfig:
    def test_defaults(self):
        cfg = ReportConfig()
        assert cfg.n_entries == 10
        assert cfg.order == "-elapsed"
        assert cfg.slow_threshold == 0.05
        assert cfg.color == "auto"
        assert cfg.output == "-"

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ReportConfig().n_entries = 5

    def test_invalid_order(self):
        with pytest.raises(ValueError):
            ReportConfig(order="random")

    def test_negative_threshold(self):
        with pytest.raises(ValueError):
            ReportConfig(slow_threshold=-1)


# ── load_yaml_config ─────────────────────────────────────────────────

class TestLoadYamlConfig:
    def test_no_path(self):
        assert load_yaml_config(None) == {}

    def test_missing_file(self, tmp_path):
        assert load_yaml_config(str(tmp_path / "missing.yml")) == {}

    def test_loads_mapping(self, tmp_path):
        path = tmp_path / "report.yml"
        path.write_text("n_entries: 3\norder: start-time\n")
        assert load_yaml_config(str(path)) == {"n_entries": 3, "order": "start-time"}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_yaml_config(str(path)) == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("n_entries: [1, 2\n")
        with pytest.raises(ValueError):
            load_yaml_config(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_yaml_config(str(path))

    def test_directory_path(self, tmp_path):
        with pytest.raises(ValueError):
            load_yaml_config(str(tmp_path))


# ── load_config precedence ───────────────────────────────────────────

def _args(**kwargs):
    fields = {"n_entries": None, "order": None, "slow_threshold": None, "color": None, "output": None}
    fields.update(kwargs)
    return Namespace(**fields)


class TestLoadConfig:
    def test_defaults(self):
        assert load_config(_args(), {}, environ={}) == ReportConfig()

    def test_yaml_values(self):
        cfg = load_config(_args(), {"n-entries": 3, "slow_threshold": 0.5, "color": "no"}, environ={})
        assert cfg.n_entries == 3
        assert cfg.slow_threshold == 0.5
        assert cfg.color is False

    def test_env_overrides_yaml(self):
        cfg = load_config(_args(), {"n_entries": 3}, environ={"QUERY_LOG_N_ENTRIES": "7"})
        assert cfg.n_entries == 7

    def test_cli_overrides_env(self):
        env = {"QUERY_LOG_ORDER": "start-time", "QUERY_LOG_COLOR": "yes"}
        cfg = load_config(_args(order="-start-time", color=False), {}, environ=env)
        assert cfg.order == "-start-time"
        assert cfg.color is False

    def test_unknown_yaml_key_ignored(self):
        assert load_config(_args(), {"colour": "yes"}, environ={}) == ReportConfig()

    def test_invalid_env_value(self):
        with pytest.raises(ValueError):
            load_config(_args(), {}, environ={"QUERY_LOG_N_ENTRIES": "ten"})
