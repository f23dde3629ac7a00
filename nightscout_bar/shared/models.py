"""Core data models for glucose readings and fetch settings."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

# Keys understood by the settings provider
SERVER_URL_KEY = "ServerURL"
API_SECRET_KEY = "APISecret"
SHOW_MMOL_KEY = "ShowValuesInMmol"
SERVER_MMOL_KEY = "ServerInMmol"

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def as_bool(value: Any, default: bool = False) -> bool:
    """Coerce a settings value to bool.

    YAML gives real booleans, environment variables give strings.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return default


@dataclass(frozen=True)
class Reading:
    """A single entry returned by the Nightscout entries endpoint.

    value is the raw sensor value (sgv) in the unit the server reports.
    """
    value: float
    direction: Optional[str]
    server_timestamp: str


@dataclass(frozen=True)
class FetchConfig:
    """Snapshot of the user settings taken at the start of each fetch."""
    server_url: str = ""
    api_secret: str = ""
    display_in_mmol: bool = False
    server_reports_in_mmol: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FetchConfig":
        """Create a snapshot from a settings mapping."""
        return cls(
            server_url=str(data.get(SERVER_URL_KEY) or "").strip(),
            api_secret=str(data.get(API_SECRET_KEY) or ""),
            display_in_mmol=as_bool(data.get(SHOW_MMOL_KEY)),
            server_reports_in_mmol=as_bool(data.get(SERVER_MMOL_KEY)),
        )

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks
        return (
            f"FetchConfig(server_url={self.server_url!r}, api_secret='***', "
            f"display_in_mmol={self.display_in_mmol}, "
            f"server_reports_in_mmol={self.server_reports_in_mmol})"
        )
