"""Utility modules for the Raindrop setup wizard."""

from raindrop_wizard.utils.logging import get_logger, setup_logging, shutdown_logging

__all__ = [
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
