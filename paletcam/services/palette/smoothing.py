"""
Temporal smoothing of live palettes.

Small frame-to-frame differences are ignored entirely; larger changes ease
in by linear interpolation. State lives in an explicit SmoothingState owned
by the caller, one per capture session.
"""

import math
from typing import List, Optional, Sequence

from loguru import logger

from paletcam.config import config
from .color_utils import RgbColor, color_distance

COLOR_DISTANCE_THRESHOLD = 35


def clamp_lerp_factor(lerp_factor) -> float:
    """Clamp into [0, 1]; non-numeric or non-finite factors take the configured default."""
    try:
        numeric_value = float(lerp_factor)
    except (TypeError, ValueError):
        return config.SMOOTHING_LERP_FACTOR
    if not math.isfinite(numeric_value):
        return config.SMOOTHING_LERP_FACTOR
    return min(1.0, max(0.0, numeric_value))


class SmoothingState:
    """Previous smoothed palette of one capture session. Not thread-safe."""

    def __init__(self, distance_threshold: float = COLOR_DISTANCE_THRESHOLD):
        self.distance_threshold = distance_threshold
        self.previous_colors: Optional[List[RgbColor]] = None

    def reset(self) -> None:
        self.previous_colors = None

    def smooth(self, raw_colors: Sequence, lerp_factor: float) -> List[RgbColor]:
        """
        Smooth a raw palette against the previous one.

        The raw palette is adopted unchanged on first use or when the palette
        size changes. Otherwise each color within the distance threshold of its
        predecessor is held, and every other color moves lerp_factor of the
        way toward the raw value.
        """
        raw = [RgbColor(color.r, color.g, color.b) for color in raw_colors or ()]
        if not raw:
            return []

        previous = self.previous_colors
        if previous is None or len(previous) != len(raw):
            logger.debug(f"Smoothing state reset for a {len(raw)}-color palette")
            self.previous_colors = raw
            return list(raw)

        factor = clamp_lerp_factor(lerp_factor)
        smoothed = []
        for raw_color, previous_color in zip(raw, previous):
            if color_distance(raw_color, previous_color) < self.distance_threshold:
                smoothed.append(previous_color)
                continue
            smoothed.append(RgbColor.from_floats(
                previous_color.r + (raw_color.r - previous_color.r) * factor,
                previous_color.g + (raw_color.g - previous_color.g) * factor,
                previous_color.b + (raw_color.b - previous_color.b) * factor
            ))

        self.previous_colors = smoothed
        return list(smoothed)


def smooth_colors(state: SmoothingState, raw_colors: Sequence, lerp_factor: float) -> List[RgbColor]:
    """Functional form of SmoothingState.smooth."""
    return state.smooth(raw_colors, lerp_factor)
