"""Version information for relay-admin."""

__version__ = "1.0.0"
