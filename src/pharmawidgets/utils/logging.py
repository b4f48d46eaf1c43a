"""
Logging for pharmawidgets.

Everything logs under the ``pharmawidgets`` logger tree:

- ``pharmawidgets.editable_grid.*``: cursor moves, search requests and dropped
  stale responses at DEBUG; failed ``on_update`` / ``on_create`` calls with
  tracebacks via ``logger.exception``.
- ``pharmawidgets.api.*``: one DEBUG line per HTTP request, ERROR for non-2xx
  responses before ``ApiError`` is raised.
- ``pharmawidgets.pharmacy_app.*``: startup parameters and page-level failures.

Grid, event bus and API modules only call ``get_logger(__name__)``. The
package root installs a ``NullHandler``, so nothing is printed until a host
configures logging. The inventory app's ``main()`` and the demo scripts call
``configure_logging()``, which adds a single stderr handler to the
``pharmawidgets`` logger and leaves the root logger alone. The level comes
from the argument, else ``PHARMAWIDGETS_LOG_LEVEL``, else INFO.

    from pharmawidgets.utils.logging import configure_logging
    configure_logging(level="DEBUG")  # watch search debounce and stale drops
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "pharmawidgets"


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure logging for the pharmawidgets logger only (never root).

    Parameters
    ----------
    level:
        Logging level (e.g. "DEBUG", "INFO"). Defaults to the
        PHARMAWIDGETS_LOG_LEVEL env var, or "INFO" if unset.
    fmt:
        Log message format. Defaults to DEFAULT_FMT.
    datefmt:
        Date format. Defaults to "%Y-%m-%d %H:%M:%S".
    force:
        If True, remove existing handlers before adding a new one. If False,
        do nothing when a stderr handler is already attached.
    """
    if level is None:
        level = os.environ.get("PHARMAWIDGETS_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    formatter = logging.Formatter(fmt=fmt or DEFAULT_FMT, datefmt=datefmt or DEFAULT_DATEFMT)

    if force:
        for h in logger.handlers[:]:
            h.close()
            logger.removeHandler(h)
    else:
        for h in logger.handlers:
            if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr:
                return

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger by name.

    If name is None, returns the 'pharmawidgets' logger.

    Use like:
        logger = get_logger(__name__)
        logger.info("Hello")
    """
    return logging.getLogger(name or ROOT_LOGGER_NAME)
