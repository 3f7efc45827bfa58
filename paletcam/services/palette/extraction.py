"""
Palette extraction entry point.

Resolves extraction options, dispatches to the grid sampler or the
median-cut pipeline, and records timing metrics for each call. Invalid
input never raises: it yields an empty result.
"""

import math
from typing import Callable, Dict, Optional, Union

from loguru import logger
from pydantic import ValidationError

from paletcam.schemas import Algorithm, ExtractionOptions, ExtractionResult
from paletcam.services.observability import performance_monitor, record_palette
from .grid import extract_grid_palette
from .median_cut import extract_median_cut_palette
from .scoring import create_scoring_profile

MIN_SWATCH_COUNT = 1

OptionsInput = Optional[Union[ExtractionOptions, Dict]]

ALGORITHM_EXTRACTORS: Dict[Algorithm, Callable[..., ExtractionResult]] = {
    Algorithm.GRID: extract_grid_palette,
    Algorithm.MEDIAN_CUT: extract_median_cut_palette
}


def clamp_swatch_count(swatch_count) -> int:
    """At least one swatch; non-numeric counts become one."""
    try:
        numeric_value = float(swatch_count)
    except (TypeError, ValueError):
        return MIN_SWATCH_COUNT
    if not math.isfinite(numeric_value):
        return MIN_SWATCH_COUNT
    return max(MIN_SWATCH_COUNT, int(numeric_value))


def resolve_options(options: OptionsInput = None) -> ExtractionOptions:
    """Validate caller options, falling back to defaults when they are unusable."""
    if isinstance(options, ExtractionOptions):
        return options
    if options is None:
        return ExtractionOptions()

    try:
        return ExtractionOptions.model_validate(options)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid extraction options: {e.error_count()} errors")
        return ExtractionOptions()


def extract(pixels, frame_width: int, frame_height: int, swatch_count: int = 5,
            options: OptionsInput = None) -> ExtractionResult:
    """
    Extract a palette from an RGBA frame.

    Args:
        pixels: Flat RGBA buffer (bytes, bytearray, memoryview or uint8 array)
        frame_width: Frame width in pixels
        frame_height: Frame height in pixels
        swatch_count: Number of colors requested; clamped to at least 1
        options: ExtractionOptions or an equivalent mapping

    Returns:
        ExtractionResult with colors and, for grid extraction, chosen cell indices
    """
    resolved = resolve_options(options)
    swatch_count = clamp_swatch_count(swatch_count)

    try:
        frame_width = int(frame_width)
        frame_height = int(frame_height)
    except (TypeError, ValueError):
        logger.debug("Non-numeric frame dimensions, returning empty palette")
        return ExtractionResult.empty()

    if pixels is None or frame_width <= 0 or frame_height <= 0:
        logger.debug(f"Invalid frame {frame_width}x{frame_height}, returning empty palette")
        return ExtractionResult.empty()

    extractor = ALGORITHM_EXTRACTORS[resolved.algorithm]
    profile = create_scoring_profile(resolved.scoring)

    with performance_monitor(f"extract_{resolved.algorithm.value}",
                             pixel_count=frame_width * frame_height,
                             swatch_count=swatch_count):
        result = extractor(pixels, frame_width, frame_height, swatch_count,
                           resolved.active_settings, profile)

    record_palette(resolved.algorithm.value, swatch_count, len(result.colors), frame_width, frame_height)
    logger.debug(f"Extracted {[color.hex for color in result.colors]} with {resolved.algorithm.value}")
    return result
