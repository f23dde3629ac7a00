"""Configuration for the Nightscout poller."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from nightscout_bar.shared.config import (
    get_config_dir,
    get_config_path,
    get_log_level,
    load_yaml_config,
)

from .diagnostics import DEFAULT_MAX_LINE_LENGTH, DEFAULT_MAX_LINES
from .staleness import STALE_AFTER_SECONDS


@dataclass
class PollerConfig:
    """Configuration for polling the Nightscout entries endpoint."""

    poll_interval: float = 30.0  # seconds between scheduled fetches
    request_timeout: float = 20.0  # total time allowed for one request
    stale_after: float = STALE_AFTER_SECONDS

    # Diagnostics bounds, per fetch
    diagnostics_max_lines: int = DEFAULT_MAX_LINES
    diagnostics_max_line_length: int = DEFAULT_MAX_LINE_LENGTH

    # User settings file (ServerURL, APISecret, ...)
    settings_file: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Check intervals are usable.

        Raises:
            ValueError: If an interval is non-positive or the request timeout
                would let scheduled requests overlap.
        """
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.request_timeout >= self.poll_interval:
            raise ValueError(
                f"request_timeout ({self.request_timeout}s) must be shorter than "
                f"poll_interval ({self.poll_interval}s)"
            )
        if self.stale_after < 0:
            raise ValueError(f"stale_after must not be negative, got {self.stale_after}")
        if self.diagnostics_max_lines < 2:
            raise ValueError(
                f"diagnostics.max_lines must be at least 2, got {self.diagnostics_max_lines}"
            )

    @property
    def settings_path(self) -> Path:
        if self.settings_file:
            return Path(self.settings_file).expanduser()
        return get_config_dir() / "settings.yaml"

    @classmethod
    def from_dict(cls, data: dict) -> "PollerConfig":
        """Create config from dictionary."""
        diagnostics = data.get("diagnostics", {}) or {}

        return cls(
            poll_interval=float(data.get("poll_interval", 30.0)),
            request_timeout=float(data.get("request_timeout", 20.0)),
            stale_after=float(data.get("stale_after", STALE_AFTER_SECONDS)),
            diagnostics_max_lines=int(diagnostics.get("max_lines", DEFAULT_MAX_LINES)),
            diagnostics_max_line_length=int(
                diagnostics.get("max_line_length", DEFAULT_MAX_LINE_LENGTH)
            ),
            settings_file=data.get("settings_file"),
            log_level=get_log_level(data),
        )


def load_config(config_path: Optional[str] = None) -> PollerConfig:
    """Load configuration from YAML file and environment.

    Args:
        config_path: Path to YAML config file. If not provided,
                    looks for NIGHTSCOUT_BAR_CONFIG env var, then
                    config-{env}.yaml in the config directory. A missing
                    file means defaults.

    Returns:
        PollerConfig instance.
    """
    load_dotenv()

    if config_path is None:
        config_path = os.environ.get("NIGHTSCOUT_BAR_CONFIG")

    path = Path(config_path) if config_path else get_config_path()

    if path.exists():
        data = load_yaml_config(path, load_env=False)
    else:
        if config_path:
            raise FileNotFoundError(f"Config file not found: {path}")
        data = {}

    # Environment variable overrides
    if interval := os.environ.get("NIGHTSCOUT_BAR_POLL_INTERVAL"):
        data["poll_interval"] = interval
    if timeout := os.environ.get("NIGHTSCOUT_BAR_TIMEOUT"):
        data["request_timeout"] = timeout
    if log_level := os.environ.get("LOG_LEVEL"):
        data["log_level"] = log_level

    return PollerConfig.from_dict(data)
