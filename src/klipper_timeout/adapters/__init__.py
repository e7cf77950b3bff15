"""Adapters that implement the core ports against real services."""
