"""
Grid Sampler

Averages square pixel blocks at fixed grid positions across the frame and
greedily picks the most interesting of them. The chosen cell indices are
returned so preview overlays can highlight where each swatch came from.
"""

from typing import List, Optional, Tuple

import cv2
import numpy as np
from loguru import logger

from paletcam.schemas import ExtractionResult, GridOptions
from .color_utils import RgbColor
from .pixel_pack import as_rgba_frame
from .scoring import ScoringProfile, build_hue_rarity_map, create_scoring_profile, score_candidate, select_greedy


def grid_cell_index(row: int, col: int, row_count: int) -> int:
    """Stable candidate index of a grid cell (column-major)."""
    return col * row_count + row


def sample_rows(frame_height: int, row_count: int) -> List[int]:
    return [(frame_height * (i + 1)) // (row_count + 1) for i in range(row_count)]


def sample_columns(frame_width: int, col_count: int) -> List[int]:
    return [
        int((frame_width / col_count) * col + frame_width / (col_count * 2))
        for col in range(col_count)
    ]


def grid_sample_points(frame_width: int, frame_height: int,
                       options: Optional[GridOptions] = None) -> List[Tuple[int, int]]:
    """(x, y) centers of every grid cell, ordered by candidate index."""
    options = options or GridOptions()
    rows = sample_rows(frame_height, options.sample_row_count)
    columns = sample_columns(frame_width, options.sample_col_count)
    return [(x, y) for x in columns for y in rows]


def sample_block(frame: np.ndarray, center_x: int, center_y: int, radius: int) -> RgbColor:
    """Average the (2r+1)^2 block around a point, clamped to the frame."""
    frame_height, frame_width = frame.shape[:2]
    y0, y1 = max(0, center_y - radius), min(frame_height, center_y + radius + 1)
    x0, x1 = max(0, center_x - radius), min(frame_width, center_x + radius + 1)

    if y0 >= y1 or x0 >= x1:
        return RgbColor(0, 0, 0)

    block = frame[y0:y1, x0:x1, :3].reshape(-1, 3)
    totals = block.sum(axis=0, dtype=np.int64)
    count = block.shape[0]
    return RgbColor.from_floats(totals[0] / count, totals[1] / count, totals[2] / count)


def block_average_from_integral(integral: np.ndarray, center_x: int, center_y: int,
                                radius: int) -> RgbColor:
    """Same as sample_block, reading block sums from a cv2.integral table."""
    frame_height, frame_width = integral.shape[0] - 1, integral.shape[1] - 1
    y0, y1 = max(0, center_y - radius), min(frame_height, center_y + radius + 1)
    x0, x1 = max(0, center_x - radius), min(frame_width, center_x + radius + 1)

    if y0 >= y1 or x0 >= x1:
        return RgbColor(0, 0, 0)

    totals = integral[y1, x1] - integral[y0, x1] - integral[y1, x0] + integral[y0, x0]
    count = (y1 - y0) * (x1 - x0)
    return RgbColor.from_floats(totals[0] / count, totals[1] / count, totals[2] / count)


def build_grid_candidates(frame: np.ndarray, options: GridOptions) -> List[RgbColor]:
    """Block-averaged color of every grid cell, in candidate index order."""
    frame_height, frame_width = frame.shape[:2]
    # (H+1, W+1, 3) running sums over the RGB channels
    integral = cv2.integral(np.ascontiguousarray(frame[:, :, :3]), sdepth=cv2.CV_64F)
    return [
        block_average_from_integral(integral, x, y, options.sample_radius)
        for x, y in grid_sample_points(frame_width, frame_height, options)
    ]


def extract_grid_palette(pixels, frame_width: int, frame_height: int, swatch_count: int,
                         options: Optional[GridOptions] = None,
                         scoring: Optional[ScoringProfile] = None) -> ExtractionResult:
    """
    Extract a palette by scoring block-averaged grid samples.

    Args:
        pixels: Flat RGBA buffer
        frame_width: Frame width in pixels
        frame_height: Frame height in pixels
        swatch_count: Number of colors to return (at least 1)
        options: Grid layout settings
        scoring: Normalized scoring profile

    Returns:
        Chosen colors in pick order plus their grid cell indices
    """
    options = options or GridOptions()
    swatch_count = max(1, swatch_count)

    frame = as_rgba_frame(pixels, frame_width, frame_height)
    if frame is None:
        return ExtractionResult.empty()
    if not frame[..., 3].any():
        logger.debug("Fully transparent frame, no grid candidates")
        return ExtractionResult.empty()

    candidate_pool = build_grid_candidates(frame, options)
    profile = scoring or create_scoring_profile()
    rarity_map = build_hue_rarity_map(candidate_pool)

    chosen_indices = select_greedy(
        candidate_pool,
        swatch_count,
        lambda candidate, chosen: score_candidate(candidate, chosen, rarity_map, profile)
    )

    logger.debug(f"Grid extraction picked cells {chosen_indices} from {len(candidate_pool)} candidates")
    return ExtractionResult(
        colors=[candidate_pool[index] for index in chosen_indices],
        chosen_indices=chosen_indices
    )
