"""
Report configuration.

Defaults live here; an optional gracc_report.yaml next to the script can
override any of them, and command-line options override both.
"""

import sys
from pathlib import Path

import yaml

from gracc_query import DATA_OUTPUT_FILE, ENDPOINT, REQUEST_TIMEOUT, RESPONSE_OUTPUT_FILE, SUMMARY_INDEX

DEFAULT_CONFIG = {
    "endpoint": ENDPOINT,
    "index": SUMMARY_INDEX,
    "interval": "1d",
    "offset": None,
    "lookback_days": 30,
    "request_timeout": REQUEST_TIMEOUT,
    "response_output": RESPONSE_OUTPUT_FILE,
    "data_output": DATA_OUTPUT_FILE,
}

CONFIG_TYPES = {
    "endpoint": (str,),
    "index": (str,),
    "interval": (str,),
    "offset": (int, type(None)),
    "lookback_days": (int,),
    "request_timeout": (int, float),
    "response_output": (str, type(None)),
    "data_output": (str, type(None)),
}


def load_report_config(yaml_file: str = "gracc_report.yaml") -> dict:
    """
    Load report settings, overlaying the YAML file on the defaults.

    Args:
        yaml_file: Path to YAML file with overrides

    Returns:
        Dictionary with every key of DEFAULT_CONFIG
    """
    config = dict(DEFAULT_CONFIG)

    if not Path(yaml_file).exists():
        return config

    try:
        with open(yaml_file) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"Warning: Could not load config from {yaml_file}: {e}", file=sys.stderr)
        return config

    if not data:
        return config
    if not isinstance(data, dict):
        print(f"Warning: Ignoring {yaml_file}, expected a mapping at the top level", file=sys.stderr)
        return config

    for key, value in data.items():
        if key not in DEFAULT_CONFIG:
            print(f"Warning: Unknown config key '{key}' in {yaml_file}", file=sys.stderr)
            continue
        expected = CONFIG_TYPES[key]
        if isinstance(value, bool) or not isinstance(value, expected):
            names = " or ".join("null" if t is type(None) else t.__name__ for t in expected)
            print(f"Warning: Ignoring '{key}' in {yaml_file}, expected {names}, got {value!r}", file=sys.stderr)
            continue
        config[key] = value

    return config
