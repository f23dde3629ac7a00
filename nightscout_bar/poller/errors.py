"""Errors raised while fetching and decoding Nightscout entries.

All of these are handled inside a single fetch attempt. Each carries a
``diagnostic`` line suitable for the connection log shown to the user.
"""

from typing import Optional


class FetchError(Exception):
    """Base class for a failed fetch stage."""

    @property
    def diagnostic(self) -> str:
        return str(self)


class InvalidURLError(FetchError):
    """The configured server URL cannot be turned into a request URL."""

    def __init__(self, url: str, reason: str = "not an http(s) URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid server URL {url!r}: {reason}")


class TransportError(FetchError):
    """DNS, connection or timeout failure before a response arrived."""

    @property
    def diagnostic(self) -> str:
        return f"Network Request Error: {self}"


class HTTPStatusError(FetchError):
    """The server answered with something other than 200."""

    def __init__(self, status: int, reason: Optional[str] = None):
        self.status = status
        self.reason = reason
        message = f"HTTP status {status}"
        if reason:
            message += f" {reason}"
        super().__init__(message)

    @property
    def diagnostic(self) -> str:
        return f"Server returned an error: {self}"


class ParseError(FetchError):
    """The response body could not be turned into a reading."""


class EmptyBodyError(ParseError):
    def __init__(self, message: str = "Empty response body"):
        super().__init__(message)


class DecodeError(ParseError):
    """Malformed JSON or an unexpected shape."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)

    @property
    def diagnostic(self) -> str:
        return f"JSON Decoding Error: {self.detail}"


class NoEntriesError(ParseError):
    def __init__(self, message: str = "No entries found in decoded data"):
        super().__init__(message)


class TimestampParseError(FetchError):
    """The entry timestamp is not a usable ISO-8601 time. Logged, never fatal."""

    def __init__(self, timestamp: str):
        self.timestamp = timestamp
        super().__init__(f"Could not parse timestamp {timestamp!r}")


class SettingsError(FetchError):
    """The settings store could not be read."""

    @property
    def diagnostic(self) -> str:
        return f"Could not read settings: {self}"
