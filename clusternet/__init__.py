"""Validation, defaulting and status logic for cluster network configuration."""

__version__ = "0.1.0"