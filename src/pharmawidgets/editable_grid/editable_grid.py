# src/pharmawidgets/editable_grid/editable_grid.py

from __future__ import annotations

from functools import partial
from typing import Any, Iterable, Optional, TYPE_CHECKING

from nicegui import events, ui

from pharmawidgets.editable_grid.config import NEW_ROW_ID, ColumnConfig, GridConfig, RowDict
from pharmawidgets.editable_grid.grid_state import (
    HAS_PANDAS,
    CreateFn,
    DataLike,
    EditableGridState,
    ErrorFn,
    RowId,
    RowsLike,
    UpdateFn,
    pd,
)
from pharmawidgets.editable_grid.theme import ensure_grid_theme
from pharmawidgets.events import EventBus
from pharmawidgets.utils.logging import get_logger

if TYPE_CHECKING:
    import pandas

logger = get_logger(__name__)

# column type -> q-input type
_INPUT_TYPES = {
    "text": "text",
    "number": "number",
    "email": "email",
    "tel": "tel",
    "autocomplete": "search",
}


class EditableGrid:
    """Inline-editable table backed by a list of row dictionaries.

    Rows are owned by the caller: edits are sent to ``on_update(row, updates)``
    as single-field patches and new rows to ``on_create(pending_row)``. After
    either call the caller is expected to refetch and pass the new snapshot
    to :meth:`set_data`.

    When ``on_create`` is given and one column has ``type="autocomplete"``,
    a quick-add entry row is shown above the data rows. Picking a search
    result stages a pending row that can be adjusted cell by cell and then
    confirmed or cancelled.

    All edit/search/sort logic lives in :class:`EditableGridState`; this
    class only renders it.
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
        parent: ui.element | None = None,
    ) -> None:
        """Initialize a new EditableGrid widget.

        Args:
            data: List of row dictionaries, pandas DataFrame or Polars DataFrame.
            columns: Column descriptors, in display order.
            on_update: ``on_update(row, updates)``; may be a coroutine function.
            on_create: ``on_create(pending_row)``; enables the entry row.
            grid_config: Grid-level configuration. Defaults to ``GridConfig()``.
            event_bus: Bus receiving ``ITEM_CREATED``. Defaults to the process bus.
            on_error: Called with the exception when an update or create fails.
            parent: Optional container. A new ``ui.column`` is created if None.
        """
        ensure_grid_theme()

        self._state = EditableGridState(
            data,
            columns,
            on_update=on_update,
            on_create=on_create,
            grid_config=grid_config,
            event_bus=event_bus,
            on_error=on_error,
        )
        self._cfg: GridConfig = self._state.config

        # True while the entry row (not the pending row) owns the NEW cursor
        self._entry_active: bool = False
        self._menu: Any = None

        container_classes = "w-full pw-grid"
        if self._cfg.zebra_rows:
            container_classes += " pw-grid-zebra"
        if self._cfg.hover_highlight:
            container_classes += " pw-grid-hover"
        if self._cfg.tight_layout:
            container_classes += " pw-grid-tight"

        self._container: ui.element = parent or ui.column()
        self._container.classes(container_classes)

        self._state.on_change(self._on_state_change)
        self._render()

        # debounce timer lives as long as the page
        ui.context.client.on_disconnect(self.dispose)

        logger.info(
            "EditableGrid initialized: %d rows, %d columns, can_create=%s",
            len(self._state.rows),
            len(self._state.columns),
            self._state.can_create,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> EditableGridState:
        """Headless state (cursor, pending row, sort) behind this view."""
        return self._state

    @property
    def container(self) -> ui.element:
        return self._container

    @property
    def rows(self) -> RowsLike:
        """Shallow copy of the current rows, in input order."""
        return self._state.rows

    def set_data(self, data: DataLike) -> None:
        """Replace the rows and re-render (e.g. after the caller refetched)."""
        self._state.set_rows(data)

    def to_pandas(self) -> "pandas.DataFrame":
        """Return the current rows as a pandas DataFrame.

        Raises:
            ImportError: If pandas is not installed in the environment.
        """
        if not HAS_PANDAS:
            raise ImportError("pandas is not available. Install 'pandas' to use to_pandas().")
        assert pd is not None  # for type checkers
        return pd.DataFrame(self._state.rows)

    def dispose(self) -> None:
        """Release the debounce timer (called on client disconnect)."""
        self._state.dispose()

    # ------------------------------------------------------------------
    # Internal: state -> view
    # ------------------------------------------------------------------

    def _on_state_change(self, reason: str) -> None:
        if reason == "candidates":
            self._render_candidates()
            return
        editing = self._state.editing
        if editing is None or editing.row_id != NEW_ROW_ID:
            self._entry_active = False
        self._render()

    def _render(self) -> None:
        self._container.clear()
        self._menu = None
        columns = self._state.columns
        with self._container:
            with ui.element("table"):
                with ui.element("thead"):
                    with ui.element("tr"):
                        for col in columns:
                            self._render_header_cell(col)
                        if self._state.can_create:
                            ui.element("th").classes("w-20")

                with ui.element("tbody"):
                    if self._state.can_create:
                        self._render_entry_row(len(columns) + 1)

                    pending = self._state.pending_row
                    if pending is not None:
                        self._render_pending_row(pending)

                    rows = self._state.displayed_rows()
                    if not rows and pending is None:
                        with ui.element("tr"):
                            colspan = len(columns) + (1 if self._state.can_create else 0)
                            with ui.element("td").props(f"colspan={colspan}").classes("text-center py-4"):
                                ui.label(self._cfg.empty_message).classes("text-gray-500")
                    for row in rows:
                        self._render_row(row)

    def _render_header_cell(self, col: ColumnConfig) -> None:
        sort = self._state.sort
        with ui.element("th") as th:
            with ui.row().classes("items-center gap-1 no-wrap"):
                ui.label(col.header)
                if sort.key == col.key:
                    ui.icon("arrow_upward" if sort.direction == "asc" else "arrow_downward").classes("text-xs")
        if col.sortable:
            th.classes("pw-sortable")
            th.on("click", partial(self._state.toggle_sort, col.key))

    def _render_row(self, row: RowDict) -> None:
        row_id = row.get(self._state.key_field)
        with ui.element("tr").classes("pw-data-row"):
            for col in self._state.columns:
                self._render_cell(row_id, col, row)
            if self._state.can_create:
                ui.element("td")

    def _render_cell(self, row_id: RowId, col: ColumnConfig, row: RowDict) -> None:
        with ui.element("td").classes(col.classes):
            if self._state.is_editing(row_id, col.key) and not (row_id == NEW_ROW_ID and self._entry_active):
                self._render_editor(col)
                return
            label = ui.label(col.display(row.get(col.key), row)).classes("min-h-[20px]")
            if col.editable:
                label.classes("pw-editable rounded px-1")
                label.on("click", partial(self._on_cell_click, row_id, col.key))

    def _render_editor(self, col: ColumnConfig) -> None:
        saving = self._state.is_saving
        with ui.row().classes("items-center gap-1 no-wrap"):
            inp = ui.input(value=self._state.draft, on_change=self._on_input_change)
            inp.props(f"autofocus dense type={_INPUT_TYPES[col.type]}").classes("pw-cell-input")
            inp.on("keydown.enter", partial(self._state.handle_key, "Enter"))
            inp.on("keydown.esc", partial(self._state.handle_key, "Escape"))
            if col.is_autocomplete:
                self._attach_menu(inp)

            ok_btn = ui.button(icon="check", on_click=self._state.save).props("flat round dense size=sm color=positive")
            cancel_btn = ui.button(icon="close", on_click=self._state.cancel_edit).props(
                "flat round dense size=sm color=negative"
            )
            if saving:
                ok_btn.disable()
                cancel_btn.disable()

    def _render_entry_row(self, colspan: int) -> None:
        col = self._state.autocomplete_column
        assert col is not None
        active = self._entry_active and self._state.is_editing(NEW_ROW_ID, col.key)
        with ui.element("tr").classes("pw-entry-row"):
            with ui.element("td").props(f"colspan={colspan}"):
                inp = ui.input(
                    placeholder=self._cfg.entry_placeholder,
                    value=self._state.draft if active else "",
                    on_change=self._on_input_change,
                )
                inp.props("dense borderless clearable" + (" autofocus" if active else "")).classes("w-full")
                inp.on("focus", self._on_entry_focus)
                if active:
                    inp.on("keydown.enter", partial(self._state.handle_key, "Enter"))
                    inp.on("keydown.esc", partial(self._state.handle_key, "Escape"))
                    self._attach_menu(inp)

    def _render_pending_row(self, pending: RowDict) -> None:
        with ui.element("tr").classes("pw-pending-row"):
            for col in self._state.columns:
                self._render_cell(NEW_ROW_ID, col, pending)
            with ui.element("td"):
                with ui.row().classes("gap-1 no-wrap"):
                    ok_btn = ui.button(icon="check", on_click=self._state.confirm_pending).props(
                        "flat round dense size=sm color=positive"
                    ).tooltip("Create")
                    cancel_btn = ui.button(icon="close", on_click=self._state.cancel_pending).props(
                        "flat round dense size=sm color=negative"
                    ).tooltip("Cancel")
                    if self._state.is_saving:
                        ok_btn.disable()
                        cancel_btn.disable()

    # ------------------------------------------------------------------
    # Internal: dropdown overlay
    # ------------------------------------------------------------------

    def _attach_menu(self, anchor: ui.element) -> None:
        # q-menu anchors itself to the parent input and follows scroll/resize
        with anchor:
            self._menu = ui.menu().props("no-parent-event no-focus fit")
        self._menu.on("hide", self._state.close_dropdown)
        self._render_candidates()

    def _render_candidates(self) -> None:
        menu = self._menu
        if menu is None:
            return
        col = self._state.column(self._state.editing.column_key) if self._state.editing else None
        display_field = col.autocomplete.display_field if col is not None and col.autocomplete else "name"

        menu.clear()
        with menu:
            for cand in self._state.candidates:
                text = cand.get(display_field)
                ui.menu_item("" if text is None else str(text), on_click=partial(self._state.select_candidate, cand))
        if self._state.dropdown_open:
            menu.open()
        else:
            menu.close()

    # ------------------------------------------------------------------
    # Internal: NiceGUI event handlers
    # ------------------------------------------------------------------

    def _on_cell_click(self, row_id: RowId, column_key: str) -> None:
        if row_id == NEW_ROW_ID:
            self._entry_active = False
        self._state.start_edit(row_id, column_key)

    def _on_entry_focus(self) -> None:
        if self._entry_active:
            return
        col = self._state.autocomplete_column
        # moving from the pending row's cell keeps the same cursor, so no change event fires
        same_cursor = col is not None and self._state.is_editing(NEW_ROW_ID, col.key)
        self._entry_active = True
        if not self._state.begin_entry():
            self._entry_active = False
            return
        if same_cursor:
            self._render()

    def _on_input_change(self, e: events.ValueChangeEventArguments) -> None:
        self._state.set_draft(e.value)
