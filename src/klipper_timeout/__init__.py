"""klipper-timeout: automatic expiry for Klipper clipboard history."""

__version__ = "0.1.0"
