"""Smoke tests for the EditableGrid view with a fake NiceGUI ``ui`` module."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any, Callable, Optional

import pytest

import pharmawidgets.editable_grid.editable_grid as eg_mod
from pharmawidgets.editable_grid import AutocompleteConfig, ColumnConfig, EditableGrid, GridConfig
from pharmawidgets.events import EventBus

pytestmark = pytest.mark.requires_nicegui


class _FakeElement:
    def __init__(self, kind: str, text: str = "", **kwargs: Any) -> None:
        self.kind = kind
        self.text = text
        self.kwargs = kwargs
        self.handlers: dict[str, Callable[..., Any]] = {}
        self.prop_strings: list[str] = []
        self.enabled = True
        self.is_open = False

    def classes(self, *_args: Any, **_kwargs: Any) -> "_FakeElement":
        return self

    def props(self, s: str = "", **_kwargs: Any) -> "_FakeElement":
        self.prop_strings.append(s)
        return self

    def tooltip(self, _text: str) -> "_FakeElement":
        return self

    def on(self, event: str, handler: Callable[..., Any]) -> "_FakeElement":
        self.handlers[event] = handler
        return self

    def disable(self) -> None:
        self.enabled = False

    def clear(self) -> None:
        return None

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def __enter__(self) -> "_FakeElement":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


class _FakeUi:
    """Records every element created; the most recent render is what tests inspect."""

    def __init__(self) -> None:
        self.created: list[_FakeElement] = []
        self.disconnect_handlers: list[Callable[[], None]] = []
        self.context = SimpleNamespace(client=SimpleNamespace(on_disconnect=self.disconnect_handlers.append))

    def _make(self, kind: str, text: str = "", **kwargs: Any) -> _FakeElement:
        el = _FakeElement(kind, text, **kwargs)
        self.created.append(el)
        return el

    def reset(self) -> None:
        self.created.clear()

    def element(self, tag: str = "div") -> _FakeElement:
        return self._make(tag)

    def column(self) -> _FakeElement:
        return self._make("column")

    def row(self) -> _FakeElement:
        return self._make("row")

    def label(self, text: str = "") -> _FakeElement:
        return self._make("label", text)

    def icon(self, name: str) -> _FakeElement:
        return self._make("icon", name)

    def input(self, label: Optional[str] = None, *, placeholder: Optional[str] = None, value: str = "",
              on_change: Any = None) -> _FakeElement:
        return self._make("input", value, placeholder=placeholder, on_change=on_change)

    def button(self, text: str = "", *, icon: Optional[str] = None, on_click: Any = None) -> _FakeElement:
        return self._make("button", text, icon=icon, on_click=on_click)

    def menu(self) -> _FakeElement:
        return self._make("menu")

    def menu_item(self, text: str = "", on_click: Any = None) -> _FakeElement:
        return self._make("menu_item", text, on_click=on_click)

    # helpers
    def labels(self) -> list[str]:
        return [e.text for e in self.created if e.kind == "label"]

    def find(self, kind: str, text: Optional[str] = None) -> list[_FakeElement]:
        return [e for e in self.created if e.kind == kind and (text is None or e.text == text)]


async def _call(handler: Callable[..., Any], *args: Any) -> None:
    result = handler(*args)
    if asyncio.iscoroutine(result):
        await result


@pytest.fixture
def fake_ui(monkeypatch: pytest.MonkeyPatch) -> _FakeUi:
    fake = _FakeUi()
    monkeypatch.setattr(eg_mod, "ui", fake)
    monkeypatch.setattr(eg_mod, "ensure_grid_theme", lambda: None)
    return fake


async def _search(query: str) -> list[dict[str, Any]]:
    catalogue = [{"id": "X1", "name": "Paracetamol", "category": "Analgesic"}]
    return [c for c in catalogue if query.lower() in c["name"].lower()]


def _columns() -> list[ColumnConfig]:
    return [
        ColumnConfig("name", label="Name", type="autocomplete", autocomplete=AutocompleteConfig(search=_search)),
        ColumnConfig("category", label="Category"),
        ColumnConfig("stock", label="Stock", type="number"),
        ColumnConfig("status", label="Status", editable=False),
    ]


def _rows() -> list[dict[str, Any]]:
    return [
        {"id": 1, "name": "A", "category": "x", "stock": 5, "status": "ok"},
        {"id": 2, "name": "B", "category": "y", "stock": 2, "status": "low"},
    ]


def _grid(rows: Optional[list[dict[str, Any]]] = None, **kwargs: Any) -> EditableGrid:
    return EditableGrid(
        _rows() if rows is None else rows,
        _columns(),
        on_update=kwargs.pop("on_update", lambda row, updates: None),
        grid_config=GridConfig(search_debounce_s=0.01),
        event_bus=EventBus(),
        **kwargs,
    )


def test_renders_headers_and_cells(fake_ui: _FakeUi) -> None:
    grid = _grid()
    labels = fake_ui.labels()
    for text in ("Name", "Category", "Stock", "Status", "A", "B", "5", "2", "ok"):
        assert text in labels
    # no on_create -> no entry row
    assert fake_ui.find("input") == []
    assert fake_ui.disconnect_handlers == [grid.dispose]


def test_empty_message(fake_ui: _FakeUi) -> None:
    _grid(rows=[])
    assert "No data found" in fake_ui.labels()


def test_read_only_cell_has_no_click_handler(fake_ui: _FakeUi) -> None:
    _grid()
    assert "click" not in fake_ui.find("label", "ok")[0].handlers
    assert "click" in fake_ui.find("label", "x")[0].handlers


def test_click_cell_opens_single_editor(fake_ui: _FakeUi) -> None:
    grid = _grid()
    fake_ui.find("label", "x")[0].handlers["click"]()
    inputs = fake_ui.find("input")
    assert len(inputs) == 1
    assert inputs[0].text == "x"
    assert grid.state.is_editing(1, "category")

    fake_ui.reset()
    grid.state.start_edit(2, "stock")
    inputs = fake_ui.find("input")
    assert [i.text for i in inputs] == ["2"]


def test_header_click_sorts_rows(fake_ui: _FakeUi) -> None:
    _grid()
    headers = [e for e in fake_ui.created if e.kind == "th" and "click" in e.handlers]
    # th order follows column order: Name, Category, Stock, Status
    stock_th = headers[2]
    fake_ui.reset()
    stock_th.handlers["click"]()
    labels = fake_ui.labels()
    assert labels.index("B") < labels.index("A")
    assert "arrow_upward" in [e.text for e in fake_ui.find("icon")]


@pytest.mark.asyncio
async def test_editor_enter_saves_through_on_update(fake_ui: _FakeUi) -> None:
    calls: list[Any] = []
    grid = _grid(on_update=lambda row, updates: calls.append((row["id"], updates)))
    fake_ui.find("label", "x")[0].handlers["click"]()
    editor = fake_ui.find("input")[0]
    editor.kwargs["on_change"](SimpleNamespace(value="new-cat"))
    await _call(editor.handlers["keydown.enter"])
    assert calls == [(1, {"category": "new-cat"})]
    assert grid.state.editing is None


@pytest.mark.asyncio
async def test_entry_row_search_and_pending_confirm(fake_ui: _FakeUi) -> None:
    created: list[dict[str, Any]] = []
    grid = _grid(on_create=created.append)

    entry = [i for i in fake_ui.find("input") if i.kwargs.get("placeholder")][0]
    assert entry.kwargs["placeholder"] == "Type to search and add a row"

    entry.handlers["focus"]()
    entry = [i for i in fake_ui.find("input") if i.kwargs.get("placeholder")][-1]
    entry.kwargs["on_change"](SimpleNamespace(value="Para"))
    await asyncio.sleep(0.05)

    items = fake_ui.find("menu_item")
    assert [i.text for i in items] == ["Paracetamol"]
    assert fake_ui.find("menu")[-1].is_open is True

    fake_ui.reset()
    await _call(items[0].kwargs["on_click"])
    assert grid.state.pending_row == {"id": "new", "name": "Paracetamol", "category": "Analgesic"}
    assert "Analgesic" in fake_ui.labels()

    confirm = [b for b in fake_ui.find("button") if b.kwargs["icon"] == "check"][0]
    await _call(confirm.kwargs["on_click"])
    assert created == [{"id": "new", "name": "Paracetamol", "category": "Analgesic"}]
    assert grid.state.pending_row is None


def test_set_data_rerenders(fake_ui: _FakeUi) -> None:
    grid = _grid()
    fake_ui.reset()
    grid.set_data([{"id": 3, "name": "C", "category": "z", "stock": 1, "status": "low"}])
    labels = fake_ui.labels()
    assert "C" in labels
    assert "A" not in labels
    assert [r["id"] for r in grid.rows] == [3]


def test_to_pandas(fake_ui: _FakeUi) -> None:
    pytest.importorskip("pandas")
    df = _grid().to_pandas()
    assert list(df["name"]) == ["A", "B"]


def _entry_input(fake_ui: _FakeUi) -> _FakeElement:
    return [i for i in fake_ui.find("input") if i.kwargs.get("placeholder")][-1]


async def _stage_paracetamol(fake_ui: _FakeUi) -> None:
    _entry_input(fake_ui).handlers["focus"]()
    _entry_input(fake_ui).kwargs["on_change"](SimpleNamespace(value="Para"))
    await asyncio.sleep(0.05)
    await _call(fake_ui.find("menu_item", "Paracetamol")[-1].kwargs["on_click"])


@pytest.mark.asyncio
async def test_menu_hide_keeps_entry_editor(fake_ui: _FakeUi) -> None:
    """Clicking outside the dropdown hides it; the typed text and the editor stay."""
    grid = _grid(on_create=lambda pending: None)
    _entry_input(fake_ui).handlers["focus"]()
    _entry_input(fake_ui).kwargs["on_change"](SimpleNamespace(value="Para"))
    await asyncio.sleep(0.05)
    menu = fake_ui.find("menu")[-1]
    assert menu.is_open is True

    inputs_before = len(fake_ui.find("input"))
    menu.handlers["hide"]()
    assert menu.is_open is False
    assert len(fake_ui.find("input")) == inputs_before
    assert grid.state.is_editing("new", "name")
    assert grid.state.draft == "Para"
    assert grid.state.pending_row is None


@pytest.mark.asyncio
async def test_entry_focus_with_pending_row_shows_empty_draft(fake_ui: _FakeUi) -> None:
    """Focusing the entry row after staging starts from an empty input, and a blank Enter keeps the name."""
    grid = _grid(on_create=lambda pending: None)
    await _stage_paracetamol(fake_ui)
    assert grid.state.pending_row["name"] == "Paracetamol"

    entry = _entry_input(fake_ui)
    fake_ui.reset()
    entry.handlers["focus"]()
    entry = _entry_input(fake_ui)
    assert entry.text == ""
    assert grid.state.draft == ""

    await _call(entry.handlers["keydown.enter"])
    assert grid.state.pending_row["name"] == "Paracetamol"


@pytest.mark.asyncio
async def test_entry_focus_from_pending_name_cell(fake_ui: _FakeUi) -> None:
    grid = _grid(on_create=lambda pending: None)
    await _stage_paracetamol(fake_ui)

    # open the pending row's own name cell: its editor shows the staged name
    fake_ui.find("label", "Paracetamol")[-1].handlers["click"]()
    assert "Paracetamol" in [i.text for i in fake_ui.find("input")]

    entry = _entry_input(fake_ui)
    fake_ui.reset()
    entry.handlers["focus"]()
    assert _entry_input(fake_ui).text == ""
    assert grid.state.draft == ""
    assert grid.state.is_editing("new", "name")
    # the pending name cell is back to a label
    assert "Paracetamol" in fake_ui.labels()
