"""Pharmacy inventory app: standalone NiceGUI page hosting EditableGrid.

Run:
    python -m pharmawidgets.pharmacy_app.app

Env vars:
    PHARMA_GUI_NATIVE: 1/0 (default 0)
    PHARMA_GUI_RELOAD: 1/0 (default 0)
    PHARMA_USE_MOCK: 1/0 (default 1) use in-memory data instead of the REST backend
    PHARMA_API_URL / PHARMA_AUTH_URL / PHARMA_API_TIMEOUT: backend endpoint
    HOST: bind host (default 127.0.0.1 native, 0.0.0.0 web)
    PORT: bind port (default find_open_port native, 8080 web)
"""

from __future__ import annotations

import os
from typing import Any, Protocol

from nicegui import run, ui

from pharmawidgets.api import ApiClient, ApiConfig, ApiError, MedicationSearchService, MedicationService
from pharmawidgets.editable_grid import AutocompleteConfig, ColumnConfig, EditableGrid, GridConfig
from pharmawidgets.events import ITEM_CREATED, EventBus, get_event_bus
from pharmawidgets.pharmacy_app.mock_data import MockCatalogueSearch, MockMedicationService
from pharmawidgets.utils import setUpGuiDefaults
from pharmawidgets.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

PAGE_SIZE = 100


class _Inventory(Protocol):
    def list_page(self, page: int = ..., items_per_page: int = ..., filters: Any = ...) -> Any: ...
    def create(self, data: Any) -> dict[str, Any]: ...
    def update(self, item_id: Any, updates: Any) -> dict[str, Any]: ...


class _Search(Protocol):
    async def search(self, query: str) -> list[dict[str, Any]]: ...


def _env_bool(name: str, default: bool) -> bool:
    """Parse env var as bool; if unset/invalid returns default."""
    raw = os.getenv(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    """Parse env var as int; if unset/invalid returns default."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def build_services(use_mock: bool) -> tuple[_Inventory, _Search]:
    """Construct the inventory and catalogue-search backends."""
    if use_mock:
        return MockMedicationService(), MockCatalogueSearch()
    client = ApiClient(ApiConfig.from_env())
    return MedicationService(client), MedicationSearchService(client)


def medication_columns(search: _Search) -> list[ColumnConfig]:
    """Inventory table columns; ``name`` searches the drug catalogue."""
    return [
        ColumnConfig(
            "name",
            label="Name",
            type="autocomplete",
            autocomplete=AutocompleteConfig(search=search.search, display_field="name", min_chars=2),
        ),
        ColumnConfig("category", label="Category"),
        ColumnConfig("dosage", label="Dosage"),
        ColumnConfig("stock", label="Stock", type="number", validate=lambda v: v.strip().isdigit()),
        ColumnConfig(
            "price",
            label="Price",
            type="number",
            render=lambda v, _row: "" if v in (None, "") else f"{float(v):.2f} €",
        ),
        ColumnConfig("supplier", label="Supplier"),
        ColumnConfig("status", label="Status", editable=False),
    ]


class InventoryPage:
    """One client's inventory page: grid + services + item-created subscription."""

    def __init__(self, inventory: _Inventory, search: _Search, *, event_bus: EventBus | None = None) -> None:
        self._inventory = inventory
        self._search = search
        self._bus = event_bus or get_event_bus()
        self.grid: EditableGrid | None = None
        self._unsubscribe = None
        self._root: ui.element | None = None

    async def _fetch_rows(self) -> list[dict[str, Any]]:
        page = await run.io_bound(self._inventory.list_page, 1, PAGE_SIZE)
        return list(page.items) if page is not None else []

    async def refresh(self) -> None:
        try:
            rows = await self._fetch_rows()
        except (ApiError, OSError) as ex:
            logger.exception("failed to load medications")
            ui.notify(f"Could not load medications: {ex}", type="negative")
            return
        if self.grid is not None:
            self.grid.set_data(rows)

    async def _on_update(self, row: dict[str, Any], updates: dict[str, Any]) -> None:
        await run.io_bound(self._inventory.update, row["id"], updates)
        ui.notify(f"Updated {row.get('name', row['id'])}", type="positive")
        await self.refresh()

    async def _on_create(self, pending: dict[str, Any]) -> None:
        data = {k: v for k, v in pending.items() if k != "id"}
        created = await run.io_bound(self._inventory.create, data)
        ui.notify(f"Added {(created or data).get('name', 'medication')}", type="positive")

    def _on_error(self, ex: Exception) -> None:
        ui.notify(f"Save failed: {ex}", type="negative")

    def _on_item_created(self, _payload: Any) -> None:
        # the bus is process-wide; schedule the refetch in this page's own slot
        if self._root is None:
            return
        with self._root:
            ui.timer(0, self.refresh, once=True)

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def build(self, rows: list[dict[str, Any]]) -> EditableGrid:
        with ui.column().classes("w-full gap-2 p-4") as root:
            self._root = root
            ui.label("Inventory").classes("text-lg font-bold")
            self.grid = EditableGrid(
                rows,
                medication_columns(self._search),
                on_update=self._on_update,
                on_create=self._on_create,
                grid_config=GridConfig(
                    key_field="id",
                    empty_message="No medications found",
                    entry_placeholder="Search the catalogue to add a medication",
                ),
                event_bus=self._bus,
                on_error=self._on_error,
            )
        self._unsubscribe = self._bus.subscribe(ITEM_CREATED, self._on_item_created)
        ui.context.client.on_disconnect(self.dispose)
        return self.grid


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------

@ui.page("/")
async def home() -> None:
    """Inventory page."""
    setUpGuiDefaults("text-sm")
    ui.page_title("Pharmacy Inventory")

    with ui.header().classes("items-center").props("dense"):
        ui.label("Pharmacy").classes("!text-lg font-bold text-white")

    inventory, search = build_services(_env_bool("PHARMA_USE_MOCK", True))
    page = InventoryPage(inventory, search)
    page.build([])
    await page.refresh()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(*, reload: bool | None = None, native_bool: bool | None = None) -> None:
    """Start the inventory application."""
    configure_logging()

    native_bool = _env_bool("PHARMA_GUI_NATIVE", False) if native_bool is None else native_bool
    reload = _env_bool("PHARMA_GUI_RELOAD", False) if reload is None else reload

    from nicegui import native as native_module
    if native_bool:
        port = _env_int("PORT", native_module.find_open_port())
    else:
        port = _env_int("PORT", 8080)

    host = os.getenv("HOST", "127.0.0.1" if native_bool else "0.0.0.0")

    logger.info("Starting Pharmacy app: host=%s port=%s reload=%s native=%s", host, port, reload, native_bool)

    run_kwargs: dict = {
        "host": host,
        "port": port,
        "reload": reload,
        "native": native_bool,
        "title": "Pharmacy Inventory",
    }
    if native_bool:
        run_kwargs["window_size"] = (1200, 800)
    ui.run(**run_kwargs)


if __name__ in {"__main__", "__mp_main__"}:
    main()
