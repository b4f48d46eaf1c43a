"""
pharmawidgets: NiceGUI widgets and backend access for a pharmacy admin panel.

This package provides:
- EditableGrid: inline-editable table with autocomplete-driven row creation
- ApiClient and CRUD services for the pharmacy REST backend
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from pharmawidgets.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's
configuration.
"""

import logging

from pharmawidgets.utils.logging import configure_logging, get_logger

from pharmawidgets.editable_grid import AutocompleteConfig, ColumnConfig, EditableGrid, GridConfig
from pharmawidgets.events import ITEM_CREATED, EventBus, get_event_bus

# NullHandler so logs don't propagate to root when no application has
# configured logging. Apps call configure_logging() to add a real handler.
_logger = logging.getLogger("pharmawidgets")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "ITEM_CREATED",
    "AutocompleteConfig",
    "ColumnConfig",
    "EditableGrid",
    "EventBus",
    "GridConfig",
    "configure_logging",
    "get_event_bus",
    "get_logger",
]

__version__ = "0.1.0"
