"""Shared utilities for nightscout-bar."""

from .models import FetchConfig, Reading
from .config import load_yaml_config, get_config_path, get_config_dir
from .logging import setup_logging

__all__ = [
    "FetchConfig",
    "Reading",
    "load_yaml_config",
    "get_config_path",
    "get_config_dir",
    "setup_logging",
]
