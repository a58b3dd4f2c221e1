"""Rhythm app: standalone NiceGUI application for keystroke box plots and replay.

Runs in native or web mode via env vars. Uses @ui.page("/") pattern.

Run:
    python -m keyrhythm.rhythm_app.rhythm_app

Env vars:
    RHYTHM_GUI_NATIVE: 1/0 (default 0)
    RHYTHM_GUI_RELOAD: 1/0 (default 0)
    HOST: bind host (default 127.0.0.1 native, 0.0.0.0 web)
    PORT: bind port (default find_open_port native, 8080 web)
"""

from __future__ import annotations

import multiprocessing as mp
import os
from multiprocessing import freeze_support

from nicegui import ui

from keyrhythm.config import RhythmConfig
from keyrhythm.context import RhythmContext
from keyrhythm.playback.timers import AsyncioTimerQueue
from keyrhythm.rhythm_app.rhythm_view import RhythmView
from keyrhythm.utils.gui_defaults import setUpGuiDefaults
from keyrhythm.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

APP_TITLE = "Keystroke Rhythm"


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


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------

def build_page(config: RhythmConfig) -> RhythmView | None:
    """Load the dataset and build the rhythm view into the current page.

    Returns None (after showing an error label) if the data cannot be loaded.
    """
    main_container = ui.column().classes("w-full gap-4 p-4")
    try:
        ctx = RhythmContext.from_data_dir(timer_queue=AsyncioTimerQueue(), config=config)
    except Exception as e:
        logger.exception("Failed to load keystroke data: %s", e)
        with main_container:
            ui.label(f"Failed to load: {e}").classes("text-negative")
        return None

    if not ctx.groups:
        with main_container:
            ui.label("No medication CSVs found in data directory.").classes("text-negative")
        return None

    view = RhythmView(ctx, config=config)
    with main_container:
        view.build()
    # Stop replaying once the browser tab is gone.
    ui.context.client.on_disconnect(ctx.stop)
    return view


@ui.page("/")
def home() -> None:
    """Home page: box plot by medication + keystroke replay."""
    setUpGuiDefaults("text-sm")
    ui.page_title(APP_TITLE)
    build_page(RhythmConfig.load())


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(*, reload: bool | None = None, native_bool: bool | None = None) -> None:
    """Start the rhythm application.

    Env vars (used when arg is None):
      - RHYTHM_GUI_NATIVE: 1/0
      - RHYTHM_GUI_RELOAD: 1/0
      - HOST: bind host
      - PORT: bind port
    """
    configure_logging()

    native_bool = _env_bool("RHYTHM_GUI_NATIVE", False) if native_bool is None else native_bool
    reload = _env_bool("RHYTHM_GUI_RELOAD", False) if reload is None else reload

    from nicegui import native as native_module
    if native_bool:
        port = _env_int("PORT", native_module.find_open_port())
    else:
        port = _env_int("PORT", 8080)

    default_host = "127.0.0.1" if native_bool else "0.0.0.0"
    host = os.getenv("HOST", default_host)

    logger.info(
        "Starting rhythm app: port=%s reload=%s native=%s",
        port,
        reload,
        native_bool,
    )

    run_kwargs: dict = {
        "host": host,
        "port": port,
        "reload": reload,
        "native": native_bool,
        "title": APP_TITLE,
    }
    if native_bool:
        run_kwargs["window_size"] = (1000, 800)
    ui.run(**run_kwargs)


if __name__ == "__main__":
    freeze_support()
    if mp.current_process().name == "MainProcess":
        main()
    else:
        logger.debug("Skipping GUI startup in worker process: %s", mp.current_process().name)
