"""Default classes and props for the NiceGUI elements the rhythm app uses."""

from __future__ import annotations

from nicegui import ui

from keyrhythm.utils.logging import get_logger

logger = get_logger(__name__)

# tailwind text size -> quasar size
_QUASAR_SIZES = {
    "text-xs": "xs",
    "text-sm": "sm",
    "text-base": "md",
    "text-lg": "lg",
}


def setUpGuiDefaults(text_size: str = "text-base") -> None:
    """Set up default classes and props for all ui elements.

    Args:
        text_size: Tailwind CSS text size class ('text-xs', 'text-sm',
                   'text-base', 'text-lg').

    Raises:
        ValueError: If text_size is not one of the supported classes.
    """
    if text_size not in _QUASAR_SIZES:
        raise ValueError(f"Unsupported text_size {text_size!r}; expected one of {sorted(_QUASAR_SIZES)}")
    text_size_quasar = _QUASAR_SIZES[text_size]

    logger.debug(f'using classes text_size:"{text_size}" text_size_quasar:{text_size_quasar}')

    ui.label.default_classes(f"{text_size} select-text")  # select-text allows double-click selection
    ui.label.default_props("dense")

    ui.button.default_classes(text_size)
    ui.button.default_props(f"dense size={text_size_quasar}")

    ui.select.default_classes(text_size)
    ui.select.default_props("dense")

    ui.slider.default_classes(text_size)
    ui.slider.default_props("dense")
