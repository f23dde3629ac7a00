"""Nightscout glucose poller and status bar."""

__version__ = "0.1.0"
