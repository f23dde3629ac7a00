"""User settings provider: server URL, API secret and unit preferences.

Settings are read again for every fetch, so edits take effect on the next
tick without restarting the poller.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from nightscout_bar.shared.models import (
    API_SECRET_KEY,
    SERVER_MMOL_KEY,
    SERVER_URL_KEY,
    SHOW_MMOL_KEY,
    FetchConfig,
)

from .errors import SettingsError

logger = logging.getLogger(__name__)

SETTINGS_KEYS = (SERVER_URL_KEY, API_SECRET_KEY, SHOW_MMOL_KEY, SERVER_MMOL_KEY)

# Environment variables that override stored settings
ENV_OVERRIDES = {
    SERVER_URL_KEY: "NIGHTSCOUT_URL",
    API_SECRET_KEY: "NIGHTSCOUT_API_SECRET",
    SHOW_MMOL_KEY: "NIGHTSCOUT_SHOW_MMOL",
    SERVER_MMOL_KEY: "NIGHTSCOUT_SERVER_MMOL",
}


def apply_env_overrides(values: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay NIGHTSCOUT_* environment variables onto a settings dict."""
    for key, env_name in ENV_OVERRIDES.items():
        env_value = os.environ.get(env_name)
        if env_value is not None:
            values[key] = env_value
    return values


class SettingsProvider(ABC):
    """Key-value source of user settings."""

    @abstractmethod
    def values(self) -> Dict[str, Any]:
        """Return the current settings as a fresh dict."""
        pass

    @abstractmethod
    def save(self, updates: Mapping[str, Any]) -> None:
        """Persist new values for some keys."""
        pass

    def snapshot(self) -> FetchConfig:
        """Take the read-only FetchConfig used by a single fetch."""
        return FetchConfig.from_dict(self.values())


class MemorySettings(SettingsProvider):
    """Settings held in process memory."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})

    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def save(self, updates: Mapping[str, Any]) -> None:
        self._values.update(updates)


class YamlSettings(SettingsProvider):
    """Settings stored in a YAML file, with environment overrides.

    The file is re-read on every call to values(). A missing file means
    empty settings.
    """

    def __init__(self, path: Union[str, Path], use_env: bool = True):
        self.path = Path(path).expanduser()
        self.use_env = use_env

    def _read_file(self) -> Dict[str, Any]:
        """Read the settings file.

        Raises:
            SettingsError: If the file can't be read or isn't a YAML mapping.
        """
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SettingsError(f"{self.path}: {e}") from e
        if not isinstance(data, dict):
            raise SettingsError(f"{self.path} must contain a mapping")
        return data

    def values(self) -> Dict[str, Any]:
        values = self._read_file()
        if self.use_env:
            apply_env_overrides(values)
        return values

    def save(self, updates: Mapping[str, Any]) -> None:
        data = self._read_file()
        data.update(updates)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        logger.info(f"Saved settings {sorted(updates)} to {self.path}")


class OverlaySettings(SettingsProvider):
    """Unsaved values layered over another provider.

    The base provider is read at snapshot time, so a broken settings file is
    reported by the fetch that needs it.
    """

    def __init__(self, base: SettingsProvider, overrides: Mapping[str, Any]):
        self.base = base
        self.overrides: Dict[str, Any] = dict(overrides)

    def values(self) -> Dict[str, Any]:
        values = self.base.values()
        values.update(self.overrides)
        return values

    def save(self, updates: Mapping[str, Any]) -> None:
        self.overrides.update(updates)
