from nicegui import ui
import pandas as pd

from pharmawidgets.editable_grid import AutocompleteConfig, ColumnConfig, EditableGrid, GridConfig
from pharmawidgets.pharmacy_app.mock_data import MockCatalogueSearch
from pharmawidgets.utils.logging import configure_logging

configure_logging("DEBUG")

df = pd.DataFrame(
    {
        "id": [1, 2, 3],
        "name": ["Amoxicillin", "Ibuprofen", "Cetirizine"],
        "category": ["Antibiotic", "NSAID", "Antihistamine"],
        "stock": [15, 95, 42],
    }
)

catalogue = MockCatalogueSearch()

columns = [
    ColumnConfig("name", label="Name", type="autocomplete", autocomplete=AutocompleteConfig(search=catalogue.search)),
    ColumnConfig("category", label="Category"),
    ColumnConfig("stock", label="Stock", type="number", validate=lambda v: v.strip().isdigit()),
]


def on_update(row: dict, updates: dict) -> None:
    print("UPDATE:", row["id"], updates)
    rows = [dict(r, **updates) if r["id"] == row["id"] else r for r in grid.rows]
    grid.set_data(rows)


def on_create(pending: dict) -> None:
    print("CREATE:", pending)
    next_id = max(r["id"] for r in grid.rows) + 1
    grid.set_data(grid.rows + [dict(pending, id=next_id)])


with ui.header().classes("py-2 px-4"):
    ui.label("EditableGrid demo")

grid = EditableGrid(
    df,
    columns,
    on_update=on_update,
    on_create=on_create,
    grid_config=GridConfig(search_debounce_s=0.2),
)

ui.run()
