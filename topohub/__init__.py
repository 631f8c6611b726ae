"""Validation and defaulting webhooks for subnet, IP binding, host and status resources."""

__version__ = "0.1.0"