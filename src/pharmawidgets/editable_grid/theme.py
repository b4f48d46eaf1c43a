from __future__ import annotations

from nicegui import ui


# Grid CSS with optional behavior controlled via container classes:
# - .pw-grid-zebra   -> zebra rows
# - .pw-grid-hover   -> row hover highlight
# - .pw-grid-tight   -> tighter padding + smaller font
_THEME_CSS = """
.pw-grid { border: 1px solid #e5e7eb; border-radius: 6px; overflow: auto; }
.pw-grid table { width: 100%; border-collapse: collapse; }
.pw-grid th { text-align: left; font-weight: 500; color: #6b7280; user-select: none; }
.pw-grid th.pw-sortable { cursor: pointer; }
.pw-grid tr { border-bottom: 1px solid #e5e7eb; }
.pw-grid tbody tr:last-child { border-bottom: none; }
.pw-grid .pw-editable { cursor: pointer; }
.pw-grid .pw-editable:hover { background-color: rgba(0, 0, 0, 0.04); }
.pw-grid .pw-entry-row td { background-color: #fafafa; }
.pw-grid .pw-pending-row td { background-color: #fffbeb; }

.pw-grid-zebra tbody tr.pw-data-row:nth-child(even) td { background-color: #f7f7f7; }
.pw-grid-hover tbody tr.pw-data-row:hover td { background-color: #e8f3ff; }

.pw-grid-tight th,
.pw-grid-tight td {
    padding: 2px 6px;
    font-size: 0.80rem;
    line-height: 1.2;
}
"""

_theme_injected: bool = False


def ensure_grid_theme() -> None:
    """Inject the grid CSS once per application (idempotent)."""
    global _theme_injected
    if not _theme_injected:
        ui.add_css(_THEME_CSS)
        _theme_injected = True
