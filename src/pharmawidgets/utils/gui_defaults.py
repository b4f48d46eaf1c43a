"""Default classes and props for the NiceGUI elements used by the grid and app."""

from __future__ import annotations

from nicegui import ui

from pharmawidgets.utils.logging import get_logger

logger = get_logger(__name__)

# tailwind text size -> quasar size
_QUASAR_SIZES = {
    "text-xs": "xs",
    "text-sm": "sm",
    "text-base": "md",
    "text-lg": "lg",
}


def setUpGuiDefaults(text_size: str = "text-sm") -> None:
    """Set up default classes and props for the ui elements used on our pages.

    Args:
        text_size: Tailwind CSS text size class ('text-xs', 'text-sm',
            'text-base' or 'text-lg').

    Raises:
        ValueError: If ``text_size`` is not one of the supported classes.
    """
    if text_size not in _QUASAR_SIZES:
        raise ValueError(f"unsupported text_size: {text_size!r}")

    logger.debug('using classes text_size:"%s" quasar:%s', text_size, _QUASAR_SIZES[text_size])

    ui.label.default_classes(f"{text_size} select-text")
    ui.button.default_classes(text_size)
    ui.button.default_props("dense")
    ui.input.default_classes(text_size)
    ui.input.default_props("dense")
    ui.menu_item.default_classes(text_size)
    ui.menu_item.default_props("dense")
