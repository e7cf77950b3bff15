"""Core domain package for klipper-timeout.

Core contains reconciliation, expiry, and filtering logic without any D-Bus
or Klipper-specific code, keeping the lifecycle rules testable in isolation.
"""
