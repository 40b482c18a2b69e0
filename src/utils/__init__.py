"""Utility functions for the RGB-D converter."""

from .logging import get_logger, set_verbosity

__all__ = ["get_logger", "set_verbosity"]
