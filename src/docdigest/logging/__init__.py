"""Logging package -- JSON rotating file + console handlers."""

from .setup import SecretFilter, setup_logging

__all__ = ["SecretFilter", "setup_logging"]
