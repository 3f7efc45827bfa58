"""
Persistent palette settings.

Holds the algorithm choice and per-algorithm settings for the lifetime of
the process so the preview loop does not rebuild extraction parameters
every frame. Values are clamped into their supported ranges on every
update; listeners are notified with a fresh snapshot.
"""

import math
import threading
from typing import Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from paletcam.config import config
from paletcam.schemas import Algorithm, ExtractionOptions, GridOptions, MedianCutOptions, ScoringWeights
from paletcam.utils.logging import get_logger

from .median_cut import DEFAULT_QUANTIZED_POOL_SIZE

GRID_ROW_COUNT_RANGE = (2, 12)
GRID_COL_COUNT_RANGE = (2, 20)
GRID_SAMPLE_RADIUS_RANGE = (1, 12)
MEDIAN_CUT_POOL_SIZE_RANGE = (4, 64)
MEDIAN_CUT_MAX_PIXELS_RANGE = (1000, 60000)
SCORING_WEIGHT_RANGE = (0, 100)

SettingsListener = Callable[["PaletteSettings"], None]

log = get_logger("paletcam.settings")


class PaletteSettings(BaseModel):
    """Snapshot of the process-wide palette settings."""
    model_config = ConfigDict(frozen=True)

    algorithm: Algorithm = Algorithm.MEDIAN_CUT
    grid: GridOptions = Field(default_factory=GridOptions)
    median_cut: MedianCutOptions = Field(
        default_factory=lambda: MedianCutOptions(quantized_pool_size=DEFAULT_QUANTIZED_POOL_SIZE)
    )
    scoring: ScoringWeights = Field(default_factory=ScoringWeights)

    def to_extraction_options(self) -> ExtractionOptions:
        return ExtractionOptions(
            algorithm=self.algorithm,
            grid=self.grid,
            median_cut=self.median_cut,
            scoring=self.scoring
        )


def clamp_integer_in_range(value, fallback_value: int, value_range: Tuple[int, int]) -> int:
    """Round into range; non-numeric values take the fallback."""
    try:
        numeric_value = float(value)
    except (TypeError, ValueError):
        return fallback_value
    if not math.isfinite(numeric_value):
        return fallback_value

    low, high = value_range
    return min(high, max(low, int(math.floor(numeric_value + 0.5))))


def _section(partial: Dict, *keys) -> Dict:
    for key in keys:
        value = partial.get(key)
        if isinstance(value, BaseModel):
            return value.model_dump()
        if isinstance(value, dict):
            return value
    return {}


def _pick(section: Dict, current, *keys):
    for key in keys:
        if key in section:
            return section[key]
    return current


def normalize_settings(current: PaletteSettings, partial: Optional[Dict] = None) -> PaletteSettings:
    """Merge a partial update into the current settings, clamping every value."""
    partial = partial or {}

    algorithm = current.algorithm
    for key in ("algorithm", "paletteExtractionAlgorithm"):
        if key in partial:
            algorithm = Algorithm.normalize(partial[key])

    grid_update = _section(partial, "grid")
    grid = GridOptions(
        sample_row_count=clamp_integer_in_range(
            _pick(grid_update, current.grid.sample_row_count, "sample_row_count", "sampleRowCount"),
            current.grid.sample_row_count, GRID_ROW_COUNT_RANGE),
        sample_col_count=clamp_integer_in_range(
            _pick(grid_update, current.grid.sample_col_count, "sample_col_count", "sampleColCount"),
            current.grid.sample_col_count, GRID_COL_COUNT_RANGE),
        sample_radius=clamp_integer_in_range(
            _pick(grid_update, current.grid.sample_radius, "sample_radius", "sampleRadius"),
            current.grid.sample_radius, GRID_SAMPLE_RADIUS_RANGE)
    )

    median_cut_update = _section(partial, "median_cut", "medianCut")
    current_pool_size = current.median_cut.quantized_pool_size or DEFAULT_QUANTIZED_POOL_SIZE
    median_cut = MedianCutOptions(
        quantized_pool_size=clamp_integer_in_range(
            _pick(median_cut_update, current_pool_size, "quantized_pool_size", "quantizedPoolSize"),
            current_pool_size, MEDIAN_CUT_POOL_SIZE_RANGE),
        max_quantizer_pixels=clamp_integer_in_range(
            _pick(median_cut_update, current.median_cut.max_quantizer_pixels,
                  "max_quantizer_pixels", "maxQuantizerPixels"),
            current.median_cut.max_quantizer_pixels, MEDIAN_CUT_MAX_PIXELS_RANGE),
        ignore_near_white=_pick(median_cut_update, current.median_cut.ignore_near_white,
                                "ignore_near_white", "ignoreNearWhite"),
        ignore_near_black=_pick(median_cut_update, current.median_cut.ignore_near_black,
                                "ignore_near_black", "ignoreNearBlack"),
        ignore_low_saturation=_pick(median_cut_update, current.median_cut.ignore_low_saturation,
                                    "ignore_low_saturation", "ignoreLowSaturation")
    )

    scoring_update = _section(partial, "scoring", "paletteScoring")
    scoring = ScoringWeights(**{
        name: clamp_integer_in_range(
            _pick(scoring_update, getattr(current.scoring, name), name, camel, f"{camel}Weight"),
            int(getattr(current.scoring, name)), SCORING_WEIGHT_RANGE)
        for name, camel in (("chroma", "chroma"), ("luma_spread", "lumaSpread"),
                            ("rarity", "rarity"), ("diversity", "diversity"))
    })

    return PaletteSettings(algorithm=algorithm, grid=grid, median_cut=median_cut, scoring=scoring)


def default_settings() -> PaletteSettings:
    """Defaults, with the algorithm and pixel budget taken from Config."""
    return normalize_settings(PaletteSettings(), {
        "algorithm": config.DEFAULT_ALGORITHM,
        "median_cut": {"max_quantizer_pixels": config.MAX_QUANTIZER_PIXELS}
    })


class SettingsStore:
    """Thread-safe holder of the current PaletteSettings."""

    def __init__(self, initial: Optional[PaletteSettings] = None):
        self._lock = threading.Lock()
        self._settings = initial or default_settings()
        self._listeners = []

    def get(self) -> PaletteSettings:
        with self._lock:
            return self._settings

    @property
    def algorithm(self) -> Algorithm:
        return self.get().algorithm

    def set_algorithm(self, algorithm) -> PaletteSettings:
        return self.update({"algorithm": algorithm})

    def update(self, partial: Optional[Dict] = None) -> PaletteSettings:
        """Apply a partial update; listeners run only when something changed."""
        with self._lock:
            previous = self._settings
            updated = normalize_settings(previous, partial)
            self._settings = updated
            listeners = list(self._listeners)

        if updated == previous:
            return updated

        log.info("Palette settings updated", extra={
            "algorithm": updated.algorithm.value,
            "grid": updated.grid.model_dump(),
            "median_cut": updated.median_cut.model_dump(),
            "scoring": updated.scoring.model_dump()
        })
        self._notify(listeners, updated)
        return updated

    def reset(self) -> PaletteSettings:
        with self._lock:
            self._settings = default_settings()
            snapshot = self._settings
            listeners = list(self._listeners)
        self._notify(listeners, snapshot)
        return snapshot

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def to_extraction_options(self) -> ExtractionOptions:
        return self.get().to_extraction_options()

    @staticmethod
    def _notify(listeners, snapshot: PaletteSettings) -> None:
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                log.error(f"Palette settings listener failed: {e}")


# Global settings store instance
_settings_store: Optional[SettingsStore] = None


def get_settings_store() -> SettingsStore:
    """Get or create the process-wide settings store."""
    global _settings_store
    if _settings_store is None:
        _settings_store = SettingsStore()
    return _settings_store
