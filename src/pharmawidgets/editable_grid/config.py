# src/pharmawidgets/editable_grid/config.py
#
# Declarative config objects for EditableGrid.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Literal, Optional, Union

ColumnType = Literal["text", "number", "email", "tel", "autocomplete"]

RowDict = dict[str, Any]
SearchFn = Callable[[str], Union[list[RowDict], Awaitable[list[RowDict]]]]
SelectFn = Callable[[RowDict, RowDict], Any]
RenderFn = Callable[[Any, RowDict], str]
ValidateFn = Callable[[str], bool]

# Reserved row identifier of the pending (not yet created) row.
NEW_ROW_ID = "new"


@dataclass
class AutocompleteConfig:
    """Typeahead configuration for an ``autocomplete`` column.

    Attributes:
        search: Called with the draft text once the debounce interval has
            elapsed. Returns (or resolves to) a list of candidate records.
        display_field: Candidate field copied into the edited column when a
            candidate is selected.
        min_chars: Minimum draft length before ``search`` is called.
        on_select: Optional ``on_select(candidate, row)`` hook called after a
            candidate has been applied. ``row`` is the edited row or the
            pending row.
    """

    search: SearchFn
    display_field: str = "name"
    min_chars: int = 2
    on_select: Optional[SelectFn] = None

    def __post_init__(self) -> None:
        if self.min_chars < 0:
            raise ValueError(f"min_chars must be >= 0, got {self.min_chars}")
        if not self.display_field:
            raise ValueError("display_field must be a non-empty field name")


@dataclass
class ColumnConfig:
    """Declarative configuration for a single grid column.

    Attributes:
        key: Key used in the row dictionaries (e.g. 'name').
        label: Header text. Defaults to ``key``.
        type: Input type used while editing. ``"autocomplete"`` columns
            search an external service while typing and require
            ``autocomplete``.
        editable: Whether clicking a cell opens the inline editor.
        sortable: Whether clicking the header sorts by this column.
        render: Optional ``render(value, row) -> str`` display formatter.
        validate: Optional predicate over the draft text. A ``False`` result
            blocks the save and keeps the cell in edit mode.
        autocomplete: Search configuration for ``type="autocomplete"``.
        classes: Extra CSS classes for the column's cells.
    """

    key: str
    label: Optional[str] = None
    type: ColumnType = "text"
    editable: bool = True
    sortable: bool = True
    render: Optional[RenderFn] = None
    validate: Optional[ValidateFn] = None
    autocomplete: Optional[AutocompleteConfig] = None
    classes: str = ""

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("column key must be a non-empty string")
        if self.type == "autocomplete" and self.autocomplete is None:
            raise ValueError(f"column {self.key!r}: type='autocomplete' requires an AutocompleteConfig")

    @property
    def header(self) -> str:
        return self.label or self.key

    @property
    def is_autocomplete(self) -> bool:
        return self.type == "autocomplete"

    def display(self, value: Any, row: RowDict) -> str:
        """Return the display text for ``value`` in ``row``."""
        if self.render is not None:
            return self.render(value, row)
        return "" if value is None else str(value)


@dataclass
class GridConfig:
    """Declarative configuration for grid-level behavior.

    Attributes:
        key_field: Row field holding the stable unique row identifier.
        search_debounce_s: Quiet period after the last keystroke before an
            autocomplete search is sent.
        empty_message: Text shown when there are no rows.
        entry_placeholder: Placeholder of the quick-add entry row input.
        zebra_rows: Alternate row background colors.
        hover_highlight: Highlight rows on mouse hover.
        tight_layout: Reduce cell padding and font size.
    """

    key_field: str = "id"
    search_debounce_s: float = 0.3

    empty_message: str = "No data found"
    entry_placeholder: str = "Type to search and add a row"

    zebra_rows: bool = True
    hover_highlight: bool = True
    tight_layout: bool = True


def validate_columns(columns: Iterable[ColumnConfig], key_field: str = "id") -> list[ColumnConfig]:
    """Check column descriptors where they are declared.

    Returns:
        The columns as a list.

    Raises:
        ValueError: On an empty column list, duplicate keys, or more than one
            autocomplete column.
        TypeError: If an entry is not a ColumnConfig.
    """
    cols = list(columns)
    if not cols:
        raise ValueError("at least one column is required")
    if not key_field:
        raise ValueError("key_field must be a non-empty field name")

    seen: set[str] = set()
    autocomplete_keys: list[str] = []
    for c in cols:
        if not isinstance(c, ColumnConfig):
            raise TypeError(f"expected ColumnConfig, got {type(c).__name__}")
        if c.key in seen:
            raise ValueError(f"duplicate column key: {c.key!r}")
        seen.add(c.key)
        if c.is_autocomplete:
            autocomplete_keys.append(c.key)

    if len(autocomplete_keys) > 1:
        raise ValueError(f"only one autocomplete column is supported, got {autocomplete_keys}")
    return cols
