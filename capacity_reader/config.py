"""Configuration loading and logging setup."""

import copy
import logging
import os

import yaml

DEFAULT_CONFIG = {
    "sheet_name_pattern": "PI{PI_NUMBER} - Capacity",
    "fallback_sheet_names": ["Capacity Planning", "Consolidated Capacity"],
    "legacy_sheet_name": "Capacity",
    "dynamic_param": None,
    "log_level": "INFO",
    "template": {},
}


def load_config(config_path=None) -> dict:
    """Load configuration from a YAML file on top of :data:`DEFAULT_CONFIG`."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path and os.path.exists(config_path):
        with open(config_path, "r") as f:
            user_config = yaml.safe_load(f) or {}
        config.update(user_config)
    return config


def setup_logging(level_str: str = "INFO"):
    """Configure logging."""
    level = getattr(logging, str(level_str).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )
