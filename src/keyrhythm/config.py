"""
Rhythm app settings persistence (platformdirs + JSON).

Persisted items (schema v1):
- playback settings: default tempo, tempo slider bounds, settle/release delays
- default_metric: metric shown when the app opens
- data_dir: directory holding the per-medication CSVs ("" = bundled data/)

Computed statistics are never persisted.

Behavior:
- If config file missing or unreadable -> defaults are used
- If schema_version mismatches:
  - default: reset to defaults
  - optional: keep loaded but update version
- Unknown keys in loaded JSON are ignored with warnings
- Out-of-range values fall back to defaults (or are clamped) with warnings
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from keyrhythm.playback.scheduler import DEFAULT_RELEASE_DELAY_MS, DEFAULT_SETTLE_DELAY_MS
from keyrhythm.typing_events.events import BOX_PLOT_METRICS, Metric
from keyrhythm.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1

APP_NAME = "keyrhythm"
CONFIG_FILENAME = "rhythm_config.json"


def _positive_float(d: Dict[str, Any], key: str, default: float, *, allow_zero: bool = False) -> float:
    if key not in d:
        return default
    try:
        v = float(d[key])
    except (TypeError, ValueError):
        logger.warning(f"Config value {key}={d[key]!r} is not a number, using {default}")
        return default
    if not math.isfinite(v) or v < 0 or (v == 0 and not allow_zero):
        logger.warning(f"Config value {key}={v!r} is out of range, using {default}")
        return default
    return v


@dataclass
class RhythmConfigData:
    """
    JSON-serializable config payload.

    Keep fields JSON-friendly: primitives only.
    """
    schema_version: int = SCHEMA_VERSION
    default_tempo: float = 1.0
    tempo_min: float = 0.25
    tempo_max: float = 4.0
    tempo_step: float = 0.25
    settle_delay_ms: float = DEFAULT_SETTLE_DELAY_MS
    release_delay_ms: float = DEFAULT_RELEASE_DELAY_MS
    default_metric: str = Metric.HOLD.value
    data_dir: str = ""

    def to_json_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "schema_version": self.schema_version,
            "default_tempo": self.default_tempo,
            "tempo_min": self.tempo_min,
            "tempo_max": self.tempo_max,
            "tempo_step": self.tempo_step,
            "settle_delay_ms": self.settle_delay_ms,
            "release_delay_ms": self.release_delay_ms,
            "default_metric": self.default_metric,
            "data_dir": self.data_dir,
        }

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "RhythmConfigData":
        """
        Tolerant loader:
        - ignores unknown keys
        - tolerates partially missing or invalid values
        - keeps default_tempo inside [tempo_min, tempo_max]
        """
        defaults = cls()
        try:
            schema_version = int(d.get("schema_version", -1))
        except (TypeError, ValueError):
            schema_version = -1

        tempo_min = _positive_float(d, "tempo_min", defaults.tempo_min)
        tempo_max = _positive_float(d, "tempo_max", defaults.tempo_max)
        if tempo_max < tempo_min:
            logger.warning(f"tempo_max={tempo_max} < tempo_min={tempo_min}, using default bounds")
            tempo_min, tempo_max = defaults.tempo_min, defaults.tempo_max
        tempo_step = _positive_float(d, "tempo_step", defaults.tempo_step)
        default_tempo = _positive_float(d, "default_tempo", defaults.default_tempo)
        default_tempo = max(tempo_min, min(tempo_max, default_tempo))

        default_metric = defaults.default_metric
        if "default_metric" in d:
            try:
                metric = Metric.parse(d["default_metric"])
                if metric in BOX_PLOT_METRICS:
                    default_metric = metric.value
                else:
                    logger.warning(f"default_metric {metric.value!r} is not a box plot metric, ignoring")
            except ValueError as e:
                logger.warning(f"{e}, using {default_metric!r}")

        data_dir = d.get("data_dir", defaults.data_dir)
        if not isinstance(data_dir, str):
            logger.warning("data_dir is not a string, ignoring")
            data_dir = defaults.data_dir

        known_keys = set(defaults.to_json_dict())
        for key in d.keys():
            if key not in known_keys:
                logger.warning(f"Unknown key '{key}' in rhythm config, ignoring")

        return cls(
            schema_version=schema_version,
            default_tempo=default_tempo,
            tempo_min=tempo_min,
            tempo_max=tempo_max,
            tempo_step=tempo_step,
            settle_delay_ms=_positive_float(d, "settle_delay_ms", defaults.settle_delay_ms, allow_zero=True),
            release_delay_ms=_positive_float(d, "release_delay_ms", defaults.release_delay_ms, allow_zero=True),
            default_metric=default_metric,
            data_dir=data_dir,
        )


class RhythmConfig:
    """
    Manager for loading/saving RhythmConfigData to disk.
    """

    def __init__(self, *, path: Path, data: Optional[RhythmConfigData] = None):
        self.path = path
        self.data = data if data is not None else RhythmConfigData()

    # -----------------------------
    # Construction / persistence
    # -----------------------------
    @staticmethod
    def default_config_path(
        app_name: str = APP_NAME,
        filename: str = CONFIG_FILENAME,
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user config path.

        macOS:   ~/Library/Application Support/keyrhythm/rhythm_config.json
        Linux:   ~/.config/keyrhythm/rhythm_config.json
        Windows: %APPDATA%\\keyrhythm\\rhythm_config.json
        """
        return Path(user_config_dir(app_name, app_author)) / filename

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        app_name: str = APP_NAME,
        filename: str = CONFIG_FILENAME,
        app_author: str | None = None,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
        create_if_missing: bool = False,
    ) -> "RhythmConfig":
        """
        Load config from disk.

        If file doesn't exist or is unreadable -> defaults.
        If schema mismatch:
          - reset_on_version_mismatch=True -> defaults
          - else -> keep loaded but overwrite schema_version

        If create_if_missing=True and file is missing -> immediately write defaults.
        """
        path = config_path or cls.default_config_path(app_name=app_name, filename=filename, app_author=app_author)
        default_data = RhythmConfigData(schema_version=schema_version)

        try:
            raw = path.read_text(encoding="utf-8")
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                logger.warning(f"Rhythm config file at {path} does not contain a dict, using defaults")
                return cls(path=path, data=default_data)

            loaded = RhythmConfigData.from_json_dict(parsed)

            if int(loaded.schema_version) != int(schema_version):
                if reset_on_version_mismatch:
                    logger.warning(
                        f"Rhythm config schema version mismatch: loaded={loaded.schema_version}, "
                        f"expected={schema_version}, resetting to defaults"
                    )
                    return cls(path=path, data=default_data)
                loaded.schema_version = int(schema_version)

            return cls(path=path, data=loaded)
        except FileNotFoundError:
            logger.debug(f"Rhythm config file not found at {path}, using defaults")
            cfg = cls(path=path, data=default_data)
            if create_if_missing:
                cfg.save()
            return cfg
        except json.JSONDecodeError as e:
            logger.warning(f"Rhythm config file at {path} is not valid JSON: {e}, using defaults")
            return cls(path=path, data=default_data)
        except OSError as e:
            logger.warning(f"Error reading rhythm config from {path}: {e}, using defaults")
            return cls(path=path, data=default_data)

    def save(self) -> None:
        """Write config to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            json_str = json.dumps(self.data.to_json_dict(), indent=2)
            self.path.write_text(json_str, encoding="utf-8")
            logger.info(f"Saved rhythm config to {self.path}")
        except Exception as e:
            logger.error(f"Error saving rhythm config to {self.path}: {e}")
            raise

    # -----------------------------
    # Accessors
    # -----------------------------
    def get_default_metric(self) -> Metric:
        return Metric.parse(self.data.default_metric)

    def set_default_metric(self, metric: Any) -> None:
        """Set the metric shown on startup.

        Raises:
            ValueError: If metric is unknown or not offered by the box plot.
        """
        metric = Metric.parse(metric)
        if metric not in BOX_PLOT_METRICS:
            raise ValueError(f"{metric.value!r} is not a box plot metric")
        self.data.default_metric = metric.value

    def get_default_tempo(self) -> float:
        return self.data.default_tempo

    def set_default_tempo(self, tempo: float) -> None:
        """Set default tempo, clamped to [tempo_min, tempo_max]."""
        self.data.default_tempo = max(self.data.tempo_min, min(self.data.tempo_max, float(tempo)))

    def get_data_dir(self) -> Optional[Path]:
        """Configured data directory, or None for the bundled data/ directory."""
        return Path(self.data.data_dir).expanduser() if self.data.data_dir else None
