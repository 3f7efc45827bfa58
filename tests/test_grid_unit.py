"""
Unit tests for the grid sampler.

Tests grid geometry, block averaging and greedy cell selection.
"""

import cv2
import numpy as np

from paletcam.schemas import GridOptions
from paletcam.services.palette.color_utils import RgbColor
from paletcam.services.palette.grid import (
    block_average_from_integral,
    build_grid_candidates,
    extract_grid_palette,
    grid_cell_index,
    grid_sample_points,
    sample_block,
    sample_columns,
    sample_rows
)


class TestGridGeometry:
    """Test sample point layout"""

    def test_sample_rows_are_evenly_spaced(self):
        """Test rows split the height into row_count + 1 gaps"""
        assert sample_rows(60, 5) == [10, 20, 30, 40, 50]

    def test_sample_columns_are_cell_centers(self):
        """Test columns sit at the center of each column band"""
        assert sample_columns(80, 8) == [5, 15, 25, 35, 45, 55, 65, 75]

    def test_points_are_column_major(self):
        """Test point order matches grid_cell_index"""
        options = GridOptions(sample_row_count=2, sample_col_count=3)
        points = grid_sample_points(60, 30, options)

        assert len(points) == 6
        assert points[grid_cell_index(1, 0, 2)] == (10, 20)
        assert points[grid_cell_index(0, 2, 2)] == (50, 10)

    def test_cell_index(self):
        """Test cell index is col * rows + row"""
        assert grid_cell_index(1, 2, 5) == 11


class TestSampleBlock:
    """Test block averaging"""

    def test_average_of_row(self):
        """Test the block mean is rounded per channel"""
        frame = np.zeros((1, 3, 4), dtype=np.uint8)
        frame[0, :, 0] = (0, 10, 20)
        frame[0, :, 1] = (0, 0, 1)

        assert sample_block(frame, 1, 0, 1) == RgbColor(10, 0, 0)
        assert sample_block(frame, 2, 0, 0) == RgbColor(20, 1, 0)

    def test_half_values_round_up(self):
        """Test x.5 means round up"""
        frame = np.zeros((1, 2, 4), dtype=np.uint8)
        frame[0, 1, 2] = 1

        assert sample_block(frame, 0, 0, 1) == RgbColor(0, 0, 1)

    def test_block_is_clamped_to_frame(self):
        """Test blocks at the corner only average in-frame pixels"""
        frame = np.zeros((4, 4, 4), dtype=np.uint8)
        frame[0, 0] = (200, 100, 50, 255)

        assert sample_block(frame, 0, 0, 0) == RgbColor(200, 100, 50)
        assert sample_block(frame, 0, 0, 1) == RgbColor(50, 25, 13)

    def test_block_outside_frame_is_black(self):
        """Test an empty intersection yields black"""
        frame = np.full((4, 4, 4), 255, dtype=np.uint8)
        assert sample_block(frame, 40, 40, 2) == RgbColor(0, 0, 0)


class TestExtractGridPalette:
    """Test grid palette extraction"""

    def test_picks_distinct_halves(self, split_frame):
        """Test the second pick jumps to the most distant color"""
        result = extract_grid_palette(split_frame, 80, 60, 2)

        assert result.colors == [RgbColor(255, 0, 0), RgbColor(0, 0, 255)]
        assert result.chosen_indices == [0, 20]

    def test_uniform_frame_picks_in_order(self, solid_frame):
        """Test identical candidates are chosen in cell order"""
        result = extract_grid_palette(solid_frame(80, 60, (10, 200, 30, 255)), 80, 60, 3)

        assert result.chosen_indices == [0, 1, 2]
        assert all(color == RgbColor(10, 200, 30) for color in result.colors)

    def test_swatch_count_bounded_by_grid(self, solid_frame):
        """Test at most rows * cols colors are returned"""
        options = GridOptions(sample_row_count=2, sample_col_count=2)
        result = extract_grid_palette(solid_frame(20, 20), 20, 20, 10, options)

        assert len(result.colors) == 4
        assert sorted(result.chosen_indices) == [0, 1, 2, 3]

    def test_invalid_buffer_is_empty(self, rgba_buffer):
        """Test a short buffer yields an empty result"""
        result = extract_grid_palette(rgba_buffer([(1, 2, 3, 255)]), 10, 10, 3)

        assert result.is_empty
        assert result.chosen_indices == []

    def test_fully_transparent_frame_is_empty(self, rgba_buffer):
        """Test a frame with no opaque pixels yields an empty result"""
        result = extract_grid_palette(rgba_buffer([(0, 0, 0, 0)] * 16), 4, 4, 3)

        assert result.to_dict() == {"colors": [], "chosenIndices": []}


class TestIntegralSampling:
    """Test block sums read from an integral image"""

    def test_matches_direct_average(self):
        """Test integral-image averages equal direct block averages"""
        rng = np.random.default_rng(3)
        frame = rng.integers(0, 256, size=(30, 40, 4), dtype=np.uint8)
        integral = cv2.integral(np.ascontiguousarray(frame[:, :, :3]), sdepth=cv2.CV_64F)

        for x, y, radius in [(0, 0, 3), (20, 15, 4), (39, 29, 2), (10, 5, 0), (80, 80, 1)]:
            assert block_average_from_integral(integral, x, y, radius) == sample_block(frame, x, y, radius)

    def test_candidates_follow_grid_order(self):
        """Test one candidate per grid cell"""
        frame = np.zeros((60, 80, 4), dtype=np.uint8)
        frame[:, 40:] = (0, 0, 255, 255)
        candidates = build_grid_candidates(frame, GridOptions())

        assert len(candidates) == 40
        assert candidates[19] == RgbColor(0, 0, 0)
        assert candidates[20] == RgbColor(0, 0, 255)
