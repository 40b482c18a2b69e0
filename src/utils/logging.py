"""Logging utility.

Thin wrapper around Python's standard logging module so that every
module of the converter writes messages in the same format.  All
loggers live under the ``src`` namespace, which lets the command line
raise or lower verbosity for the whole package at once.
"""

import logging

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
ROOT_LOGGER = 'src'


def get_logger(name: str) -> logging.Logger:
    """Return a logger for ``name`` writing through the package handler."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_verbosity(verbose: bool = False, quiet: bool = False) -> None:
    """Switch the package loggers to DEBUG (verbose) or WARNING (quiet)."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    get_logger(ROOT_LOGGER).setLevel(level)
