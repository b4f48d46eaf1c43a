# src/pharmawidgets/editable_grid/grid_state.py
#
# Headless state for EditableGrid: editing cursor, draft, debounced
# autocomplete search, pending new row and sort state. No NiceGUI imports
# here so the whole edit flow can be driven from tests.

from __future__ import annotations

import asyncio
import inspect
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union, TYPE_CHECKING

from pharmawidgets.editable_grid.config import (
    NEW_ROW_ID,
    ColumnConfig,
    GridConfig,
    RowDict,
    validate_columns,
)
from pharmawidgets.editable_grid.sorting import SortState, sort_rows
from pharmawidgets.events import ITEM_CREATED, EventBus, get_event_bus
from pharmawidgets.utils.logging import get_logger

logger = get_logger(__name__)

# Optional pandas
try:  # pragma: no cover - import guard
    import pandas as _pd  # type: ignore[import]
    HAS_PANDAS = True
except Exception:  # pragma: no cover - pandas optional
    _pd = None  # type: ignore[assignment]
    HAS_PANDAS = False

# Optional polars
try:  # pragma: no cover - import guard
    import polars as _pl  # type: ignore[import]
    HAS_POLARS = True
except Exception:  # pragma: no cover - polars optional
    _pl = None  # type: ignore[assignment]
    HAS_POLARS = False

if TYPE_CHECKING:  # for type checkers only
    import pandas as pd
    import polars as pl
else:  # runtime aliases (may be None)
    pd = _pd  # type: ignore[assignment]
    pl = _pl  # type: ignore[assignment]


RowsLike = List[RowDict]
DataLike = Union[RowsLike, "pd.DataFrame", "pl.DataFrame"]  # type: ignore[name-defined]
RowId = Union[str, int]

UpdateFn = Callable[[RowDict, RowDict], Any]
CreateFn = Callable[[RowDict], Any]
ErrorFn = Callable[[Exception], None]
ChangeHandler = Callable[[str], None]


class EditState(Enum):
    """Where the grid is in the cell edit cycle."""
    IDLE = "idle"
    EDITING = "editing"
    SEARCHING = "searching"
    SAVING = "saving"


@dataclass(frozen=True)
class EditingCell:
    """The single (row, column) pair currently open for inline edit."""

    row_id: RowId
    column_key: str


async def _resolve(value: Any) -> Any:
    """Await ``value`` if the callback returned an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


def _drop_missing(row: RowDict) -> RowDict:
    """Replace NaN cells (missing values in a DataFrame) with None."""
    return {k: (None if isinstance(v, float) and math.isnan(v) else v) for k, v in row.items()}


def convert_input_to_rows(data: DataLike) -> RowsLike:
    """Convert input data into the canonical ``list[dict]`` representation.

    Args:
        data: List of mappings, pandas DataFrame, or Polars DataFrame.

    Raises:
        TypeError: For any other input type.
    """
    if isinstance(data, list):
        if all(isinstance(row, Mapping) for row in data):
            return [dict(row) for row in data]
        raise TypeError("List input must contain mapping/dict-like rows.")

    if HAS_PANDAS and pd is not None and isinstance(data, pd.DataFrame):
        return [_drop_missing(row) for row in data.to_dict(orient="records")]

    if HAS_POLARS and pl is not None and isinstance(data, pl.DataFrame):
        return [_drop_missing(row) for row in data.to_dicts()]

    raise TypeError(
        "Unsupported data type for EditableGrid. "
        "Expected list[dict], pandas.DataFrame, or polars.DataFrame."
    )


class EditableGridState:
    """Edit/search/create/sort state behind one EditableGrid.

    Rows are owned by the caller. This class never deletes or persists rows
    itself: it asks ``on_update`` / ``on_create`` and expects the caller to
    hand back a fresh snapshot through :meth:`set_rows`.

    Change notifications:
        Handlers registered with :meth:`on_change` are called with a reason
        string: ``"rows"``, ``"cursor"``, ``"candidates"``, ``"pending"``,
        ``"sort"`` or ``"saving"``. Draft keystrokes do not notify.
    """

    def __init__(
        self,
        data: DataLike,
        columns: Iterable[ColumnConfig],
        *,
        on_update: UpdateFn,
        on_create: Optional[CreateFn] = None,
        grid_config: GridConfig | None = None,
        event_bus: EventBus | None = None,
        on_error: Optional[ErrorFn] = None,
    ) -> None:
        self._cfg: GridConfig = grid_config or GridConfig()
        self._columns: list[ColumnConfig] = validate_columns(columns, self._cfg.key_field)
        self._by_key: dict[str, ColumnConfig] = {c.key: c for c in self._columns}
        self._rows: RowsLike = convert_input_to_rows(data)

        self._on_update = on_update
        self._on_create = on_create
        self._on_error = on_error
        self._bus: EventBus = event_bus or get_event_bus()

        self._editing: EditingCell | None = None
        self._draft: str = ""
        self._candidates: RowsLike = []
        self._dropdown_open: bool = False
        self._saving: bool = False
        self._creating: bool = False
        self._pending: RowDict | None = None
        self._sort: SortState = SortState()

        self._debounce_task: Optional[asyncio.Task[None]] = None
        # bumped on every search and cursor reset; older responses are dropped
        self._search_seq: int = 0

        self._change_handlers: list[ChangeHandler] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def config(self) -> GridConfig:
        return self._cfg

    @property
    def key_field(self) -> str:
        return self._cfg.key_field

    @property
    def columns(self) -> list[ColumnConfig]:
        return list(self._columns)

    @property
    def rows(self) -> RowsLike:
        """Shallow copy of the current row snapshot, in input order."""
        return [row.copy() for row in self._rows]

    @property
    def editing(self) -> EditingCell | None:
        return self._editing

    @property
    def draft(self) -> str:
        return self._draft

    @property
    def candidates(self) -> RowsLike:
        return list(self._candidates)

    @property
    def dropdown_open(self) -> bool:
        return self._dropdown_open

    @property
    def pending_row(self) -> RowDict | None:
        return dict(self._pending) if self._pending is not None else None

    @property
    def sort(self) -> SortState:
        return self._sort

    @property
    def is_saving(self) -> bool:
        return self._saving or self._creating

    @property
    def autocomplete_column(self) -> ColumnConfig | None:
        for c in self._columns:
            if c.is_autocomplete:
                return c
        return None

    @property
    def can_create(self) -> bool:
        """True when the quick-add entry row should be offered."""
        return self._on_create is not None and self.autocomplete_column is not None

    @property
    def edit_state(self) -> EditState:
        if self.is_saving:
            return EditState.SAVING
        if self._editing is None:
            return EditState.IDLE
        searching = self._debounce_task is not None and not self._debounce_task.done()
        if self._dropdown_open or searching:
            return EditState.SEARCHING
        return EditState.EDITING

    def displayed_rows(self) -> RowsLike:
        """Rows in display order. The underlying snapshot is never reordered."""
        return sort_rows(self._rows, self._sort)

    def is_editing(self, row_id: RowId, column_key: str) -> bool:
        return self._editing == EditingCell(row_id, column_key)

    def column(self, key: str) -> ColumnConfig | None:
        return self._by_key.get(key)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def on_change(self, handler: ChangeHandler) -> None:
        """Register a callback called with a reason string on state changes."""
        self._change_handlers.append(handler)

    def _notify(self, reason: str) -> None:
        for handler in list(self._change_handlers):
            try:
                handler(reason)
            except Exception:
                logger.exception("Error in change handler (%s)", reason)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def set_rows(self, data: DataLike) -> None:
        """Replace the row snapshot (after the caller refetched)."""
        self._rows = convert_input_to_rows(data)
        cursor = self._editing
        if cursor is not None and cursor.row_id != NEW_ROW_ID and self._find_row(cursor.row_id) is None:
            logger.debug("editing row %r disappeared on refresh", cursor.row_id)
            self._reset_cursor()
        logger.debug("set_rows rows=%d", len(self._rows))
        self._notify("rows")

    def _find_row(self, row_id: RowId) -> RowDict | None:
        for row in self._rows:
            if row.get(self.key_field) == row_id:
                return row
        return None

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def start_edit(self, row_id: RowId, column_key: str, *, draft: Optional[str] = None) -> bool:
        """Open the editor on one cell, closing whatever was open before.

        Args:
            row_id: Key of the row, or ``NEW_ROW_ID`` for the pending row.
            column_key: Column to edit.
            draft: Initial draft text. Defaults to the cell's current value.

        Returns:
            False if the column is unknown or read-only, or the row does not exist.
        """
        col = self._by_key.get(column_key)
        if col is None or not col.editable:
            return False

        if row_id == NEW_ROW_ID:
            if self._pending is None and not (col.is_autocomplete and self.can_create):
                return False
            value = self._pending.get(column_key) if self._pending is not None else None
        else:
            row = self._find_row(row_id)
            if row is None:
                logger.warning("start_edit: no row with %s=%r", self.key_field, row_id)
                return False
            value = row.get(column_key)

        self._reset_cursor()
        self._editing = EditingCell(row_id, column_key)
        if draft is not None:
            self._draft = draft
        else:
            self._draft = "" if value is None else str(value)
        logger.debug("start_edit row_id=%r column=%r", row_id, column_key)
        self._notify("cursor")
        return True

    def begin_entry(self) -> bool:
        """Focus the quick-add entry row with an empty draft."""
        col = self.autocomplete_column
        if col is None or not self.can_create:
            return False
        if not self.is_editing(NEW_ROW_ID, col.key):
            return self.start_edit(NEW_ROW_ID, col.key, draft="")
        # moving from the pending row's cell: same cursor, fresh draft
        self._cancel_debounce_task()
        self._search_seq += 1
        self._draft = ""
        self._candidates = []
        self._dropdown_open = False
        return True

    def cancel_edit(self) -> None:
        """Discard the draft and return to idle. Ignored while saving."""
        if self._editing is None or self._saving:
            return
        logger.debug("cancel_edit %r", self._editing)
        self._reset_cursor()
        self._notify("cursor")

    def _reset_cursor(self) -> None:
        self._cancel_debounce_task()
        self._search_seq += 1
        self._editing = None
        self._draft = ""
        self._candidates = []
        self._dropdown_open = False

    # ------------------------------------------------------------------
    # Draft + debounced search
    # ------------------------------------------------------------------

    def set_draft(self, value: Any) -> None:
        """Update the draft of the open cell; autocomplete columns re-arm the search."""
        if self._editing is None:
            return
        self._draft = "" if value is None else str(value)
        col = self._by_key[self._editing.column_key]
        if col.is_autocomplete:
            self._schedule_search()

    def close_dropdown(self) -> None:
        """Hide the candidate list without touching the draft (outside click)."""
        if not self._dropdown_open and not self._candidates:
            return
        self._dropdown_open = False
        self._candidates = []
        self._notify("candidates")

    def _cancel_debounce_task(self) -> None:
        t = self._debounce_task
        self._debounce_task = None
        if t is not None and not t.done():
            t.cancel()

    def _schedule_search(self) -> None:
        cursor = self._editing
        assert cursor is not None
        ac = self._by_key[cursor.column_key].autocomplete
        assert ac is not None

        self._cancel_debounce_task()

        query = self._draft
        if len(query) < ac.min_chars:
            self._search_seq += 1
            self.close_dropdown()
            return

        delay = self._cfg.search_debounce_s

        async def _search_later() -> None:
            try:
                await asyncio.sleep(delay)
                await self._run_search(cursor, query)
            except asyncio.CancelledError:
                return

        self._debounce_task = asyncio.create_task(_search_later())

    async def _run_search(self, cursor: EditingCell, query: str) -> None:
        ac = self._by_key[cursor.column_key].autocomplete
        assert ac is not None

        self._search_seq += 1
        token = self._search_seq
        logger.debug("search #%d query=%r", token, query)

        try:
            results = await _resolve(ac.search(query))
        except Exception:
            logger.exception("autocomplete search failed for %r", query)
            results = []

        if token != self._search_seq or cursor != self._editing:
            logger.debug("dropping stale search response #%d", token)
            return

        self._candidates = [dict(r) for r in (results or [])]
        self._dropdown_open = bool(self._candidates)
        self._notify("candidates")

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    async def handle_key(self, key: str) -> None:
        """Keyboard handling for the open editor (``"Enter"`` / ``"Escape"``)."""
        if key == "Enter":
            if self._dropdown_open and self._candidates:
                await self.select_candidate(self._candidates[0])
            else:
                await self.save()
        elif key == "Escape":
            if self._dropdown_open:
                self.close_dropdown()
            else:
                self.cancel_edit()

    def _coerce_draft(self, col: ColumnConfig, draft: str) -> tuple[bool, Any]:
        if col.validate is not None and not col.validate(draft):
            return False, None
        if col.type != "number":
            return True, draft
        text = draft.strip()
        try:
            return True, int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return False, None
        if not math.isfinite(number):
            return False, None
        return True, number

    async def save(self) -> bool:
        """Commit the open cell.

        Existing rows go through ``on_update`` with a single-field patch. The
        reserved new row only updates the local pending record.

        Returns:
            True if the value was accepted (and, for existing rows, persisted).
        """
        cursor = self._editing
        if cursor is None or self._saving:
            return False

        col = self._by_key[cursor.column_key]
        ok, value = self._coerce_draft(col, self._draft)
        if not ok:
            logger.debug("validation rejected %r for column %r", self._draft, col.key)
            return False

        if cursor.row_id == NEW_ROW_ID:
            if col.is_autocomplete and not self._draft.strip():
                logger.debug("blank %r on the new row ignored", col.key)
                return False
            pending = dict(self._pending) if self._pending is not None else {self.key_field: NEW_ROW_ID}
            pending[col.key] = value
            self._pending = pending
            self._reset_cursor()
            self._notify("pending")
            return True

        row = self._find_row(cursor.row_id)
        if row is None:
            self._reset_cursor()
            self._notify("cursor")
            return False

        self._cancel_debounce_task()
        self._dropdown_open = False
        self._candidates = []
        self._saving = True
        self._notify("saving")

        updates: RowDict = {col.key: value}
        try:
            await _resolve(self._on_update(dict(row), updates))
            saved = True
            logger.debug("updated row %r: %r", cursor.row_id, updates)
        except Exception as ex:
            logger.exception("on_update failed for row %r", cursor.row_id)
            self._report_error(ex)
            saved = False
        finally:
            self._saving = False

        # the user may have opened another cell while the save was in flight
        if self._editing == cursor:
            self._reset_cursor()
        self._notify("cursor")
        return saved

    async def select_candidate(self, candidate: Mapping[str, Any]) -> None:
        """Apply a search result to the open autocomplete cell."""
        cursor = self._editing
        if cursor is None:
            return
        col = self._by_key[cursor.column_key]
        ac = col.autocomplete
        if ac is None:
            return

        display = candidate.get(ac.display_field)

        if cursor.row_id == NEW_ROW_ID:
            # fields the candidate does not provide keep their hand-edited values
            pending: RowDict = dict(self._pending) if self._pending is not None else {}
            pending[self.key_field] = NEW_ROW_ID
            pending[col.key] = display
            for c in self._columns:
                if c.key in (col.key, self.key_field):
                    continue
                if c.key in candidate:
                    pending[c.key] = candidate[c.key]
            self._pending = pending
            self._reset_cursor()
            logger.debug("pending row staged: %r", pending)
            self._notify("pending")
            self._call_on_select(ac.on_select, candidate, dict(pending))
            return

        row = self._find_row(cursor.row_id)
        self._draft = "" if display is None else str(display)
        self._dropdown_open = False
        self._candidates = []
        if await self.save() and row is not None:
            self._call_on_select(ac.on_select, candidate, dict(row))

    def _call_on_select(self, hook: Any, candidate: Mapping[str, Any], row: RowDict) -> None:
        if hook is None:
            return
        try:
            hook(dict(candidate), row)
        except Exception:
            logger.exception("Error in on_select handler")

    # ------------------------------------------------------------------
    # Pending row
    # ------------------------------------------------------------------

    async def confirm_pending(self) -> bool:
        """Hand the pending row to ``on_create``; it is discarded either way."""
        if self._pending is None or self._on_create is None or self._creating:
            return False

        pending = dict(self._pending)
        if self._editing is not None and self._editing.row_id == NEW_ROW_ID:
            self._reset_cursor()

        self._creating = True
        self._notify("saving")
        try:
            await _resolve(self._on_create(pending))
            created = True
            logger.info("created row from pending record %r", pending)
        except Exception as ex:
            logger.exception("on_create failed")
            self._report_error(ex)
            created = False
        finally:
            self._creating = False
            self._pending = None

        if created:
            self._bus.emit(ITEM_CREATED)
        self._notify("pending")
        return created

    def cancel_pending(self) -> None:
        """Drop the pending row without calling ``on_create``."""
        if self._pending is None:
            return
        if self._editing is not None and self._editing.row_id == NEW_ROW_ID:
            self._reset_cursor()
        self._pending = None
        logger.debug("pending row cancelled")
        self._notify("pending")

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------

    def toggle_sort(self, column_key: str) -> None:
        col = self._by_key.get(column_key)
        if col is None or not col.sortable:
            return
        self._sort = self._sort.toggle(column_key)
        logger.debug("sort %s %s", self._sort.key, self._sort.direction)
        self._notify("sort")

    # ------------------------------------------------------------------
    # Teardown / errors
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Release the debounce timer. Safe to call more than once."""
        self._cancel_debounce_task()
        self._search_seq += 1

    def _report_error(self, ex: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(ex)
        except Exception:
            logger.exception("Error in on_error handler")
