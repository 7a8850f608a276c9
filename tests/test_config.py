#!/usr/bin/env python3
"""
Unit tests for report configuration loading.
"""

import os
import sys
from unittest.mock import mock_open, patch

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import DEFAULT_CONFIG, load_report_config


class TestLoadReportConfig:
    """Test the YAML override loading."""

    def test_file_not_found(self):
        with patch("pathlib.Path.exists", return_value=False):
            config = load_report_config("nonexistent_file")

        assert config == DEFAULT_CONFIG

    def test_defaults_not_mutated(self, tmp_path):
        path = tmp_path / "gracc_report.yaml"
        path.write_text("interval: 1h\n")

        load_report_config(str(path))

        assert DEFAULT_CONFIG["interval"] == "1d"

    def test_overrides(self, tmp_path):
        path = tmp_path / "gracc_report.yaml"
        path.write_text("interval: 6h\nlookback_days: 7\ndata_output: null\n")

        config = load_report_config(str(path))

        assert config["interval"] == "6h"
        assert config["lookback_days"] == 7
        assert config["data_output"] is None
        assert config["index"] == DEFAULT_CONFIG["index"]

    def test_unknown_key_warns(self, tmp_path, capsys):
        path = tmp_path / "gracc_report.yaml"
        path.write_text("colour: blue\n")

        config = load_report_config(str(path))

        assert "colour" not in config
        assert "Unknown config key 'colour'" in capsys.readouterr().err

    def test_empty_file(self):
        with patch("builtins.open", mock_open(read_data="")):
            with patch("pathlib.Path.exists", return_value=True):
                config = load_report_config("test_file")

        assert config == DEFAULT_CONFIG

    def test_malformed_yaml_warns(self, tmp_path, capsys):
        path = tmp_path / "gracc_report.yaml"
        path.write_text("interval: [1d\n")

        config = load_report_config(str(path))

        assert config == DEFAULT_CONFIG
        assert "Could not load config" in capsys.readouterr().err

    def test_non_mapping_warns(self, tmp_path, capsys):
        path = tmp_path / "gracc_report.yaml"
        path.write_text("- 1d\n- 6h\n")

        config = load_report_config(str(path))

        assert config == DEFAULT_CONFIG
        assert "expected a mapping" in capsys.readouterr().err

    def test_wrong_type_keeps_default(self, tmp_path, capsys):
        path = tmp_path / "gracc_report.yaml"
        path.write_text("lookback_days: '7'\ninterval: 6h\nrequest_timeout: true\n")

        config = load_report_config(str(path))

        assert config["lookback_days"] == DEFAULT_CONFIG["lookback_days"]
        assert config["request_timeout"] == DEFAULT_CONFIG["request_timeout"]
        assert config["interval"] == "6h"
        err = capsys.readouterr().err
        assert "Ignoring 'lookback_days'" in err
        assert "Ignoring 'request_timeout'" in err
