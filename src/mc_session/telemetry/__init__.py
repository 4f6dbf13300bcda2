"""Logging and console output helpers."""

from .logging import ChatEcho, coded_to_rich, configure_logging

__all__ = ["ChatEcho", "coded_to_rich", "configure_logging"]
