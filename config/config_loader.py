"""
config_loader.py
-----------------
Singleton config loader. Reads config.yaml once and caches it.
All modules access configuration through this; no hardcoded thresholds.
"""

import os
import yaml
from typing import Any, Dict


_CONFIG_CACHE: Dict[str, Any] = {}


def load_config(config_path: str | None = None) -> Dict[str, Any]:
    """
    Load and cache the YAML configuration file.

    Args:
        config_path: Path to config.yaml. Defaults to $PAYOUT_CONFIG_PATH, then
            config/config.yaml next to this file.

    Returns:
        Full config dictionary.
    """
    global _CONFIG_CACHE

    if _CONFIG_CACHE:
        return _CONFIG_CACHE

    if config_path is None:
        config_path = os.environ.get(
            "PAYOUT_CONFIG_PATH",
            os.path.join(os.path.dirname(__file__), "config.yaml"),
        )

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        _CONFIG_CACHE = yaml.safe_load(f)

    return _CONFIG_CACHE


def get_data_source_config() -> Dict[str, Any]:
    """Returns the data_source block."""
    return load_config()["data_source"]


def get_search_config() -> Dict[str, Any]:
    """Returns the search block (length gate + keyword rules)."""
    return load_config()["search"]


def get_keyword_rules() -> list[Dict[str, Any]]:
    """Returns the ordered keyword rule list."""
    return get_search_config()["keyword_rules"]


def get_min_query_length() -> int:
    return int(get_search_config()["min_query_length"])


def get_status_options() -> list[str]:
    """Returns the fixed final_status values offered in the status selector."""
    return list(load_config()["filters"]["statuses"])


def get_low_margin_threshold() -> float:
    """Returns the low-margin alert threshold, in percent."""
    return float(load_config()["alerts"]["low_margin_threshold_pct"])


def get_margin_decimals() -> int:
    return int(load_config()["display"]["margin_decimals"])


def reset_config() -> None:
    """Clears cached config. Useful for testing."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = {}
