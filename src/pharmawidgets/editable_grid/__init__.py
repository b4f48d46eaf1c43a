"""EditableGrid - inline-editable table widget for NiceGUI."""

from .config import NEW_ROW_ID, AutocompleteConfig, ColumnConfig, GridConfig, validate_columns
from .editable_grid import EditableGrid
from .grid_state import EditableGridState, EditingCell, EditState
from .sorting import SortState, sort_rows

__all__ = [
    "NEW_ROW_ID",
    "AutocompleteConfig",
    "ColumnConfig",
    "EditState",
    "EditableGrid",
    "EditableGridState",
    "EditingCell",
    "GridConfig",
    "SortState",
    "sort_rows",
    "validate_columns",
]
