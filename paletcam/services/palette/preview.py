"""
Live preview session.

Runs palette extraction on every Nth frame, smooths the palette on every
frame and tracks the dominant color. One session per capture session.
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger

from paletcam.config import config
from paletcam.utils.logging import get_logger
from .color_utils import RgbColor
from .dominant import get_dominant_color
from .extraction import clamp_swatch_count, extract
from .settings import SettingsStore, get_settings_store
from .smoothing import SmoothingState, clamp_lerp_factor


@dataclass
class PreviewFrame:
    """Palette state after processing one video frame."""
    raw_colors: List[RgbColor] = field(default_factory=list)
    colors: List[RgbColor] = field(default_factory=list)
    chosen_indices: List[int] = field(default_factory=list)
    dominant_color: Optional[RgbColor] = None
    extracted: bool = False


class PreviewSession:
    """Frame-loop driver for one capture session. Not thread-safe."""

    def __init__(self, swatch_count: int = config.DEFAULT_SWATCH_COUNT,
                 settings_store: Optional[SettingsStore] = None,
                 extraction_interval: int = config.EXTRACTION_INTERVAL,
                 lerp_factor: float = config.SMOOTHING_LERP_FACTOR,
                 session_id: Optional[str] = None):
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.log = get_logger("paletcam.preview").bind(session_id=self.session_id)
        self.swatch_count = clamp_swatch_count(swatch_count)
        self.settings_store = settings_store or get_settings_store()
        self.extraction_interval = max(1, int(extraction_interval))
        self.lerp_factor = clamp_lerp_factor(lerp_factor)
        self.smoothing = SmoothingState()
        self.frame_count = 0
        self._last_colors: Optional[List[RgbColor]] = None
        self._last_chosen_indices: List[int] = []

    def set_swatch_count(self, swatch_count: int) -> None:
        """Takes effect on the next extraction."""
        self.swatch_count = clamp_swatch_count(swatch_count)
        self.log.info("Swatch count changed", extra={"swatch_count": self.swatch_count})

    def reset(self) -> None:
        self.log.info("Preview session reset", extra={"frames": self.frame_count})
        self.frame_count = 0
        self._last_colors = None
        self._last_chosen_indices = []
        self.smoothing.reset()

    def _should_extract(self) -> bool:
        return (self._last_colors is None
                or self.frame_count % self.extraction_interval == 1 % self.extraction_interval)

    def process_frame(self, pixels, frame_width: int, frame_height: int) -> PreviewFrame:
        self.frame_count += 1
        extracted = False

        if self._should_extract():
            result = extract(pixels, frame_width, frame_height, self.swatch_count,
                             self.settings_store.to_extraction_options())
            self._last_colors = result.colors
            self._last_chosen_indices = result.chosen_indices
            extracted = True

        if not self._last_colors:
            logger.debug(f"Frame {self.frame_count}: no palette available")
            return PreviewFrame(chosen_indices=list(self._last_chosen_indices), extracted=extracted)

        smoothed = self.smoothing.smooth(self._last_colors, self.lerp_factor)
        return PreviewFrame(
            raw_colors=list(self._last_colors),
            colors=smoothed,
            chosen_indices=list(self._last_chosen_indices),
            dominant_color=get_dominant_color(smoothed),
            extracted=extracted
        )
