"""
Unit tests for median-cut palette extraction.

Tests the pack -> quantize -> rank pipeline end to end plus its pool size
and population weighting helpers.
"""

import math

import pytest

from paletcam.schemas import MedianCutOptions
from paletcam.services.observability import get_metrics_collector
from paletcam.services.palette.color_utils import Candidate, RgbColor, pack_argb_8888
from paletcam.services.palette.median_cut import (
    extract_median_cut_palette,
    get_population_score,
    get_quantized_pool_size,
    quantize_candidates,
    rank_quantized_candidates
)
from paletcam.services.palette.scoring import create_scoring_profile


class TestPoolSize:
    """Test quantizer pool size derivation"""

    @pytest.mark.parametrize("swatch_count,expected", [(1, 16), (5, 16), (6, 18), (8, 24), (12, 24)])
    def test_derived_pool_size(self, swatch_count, expected):
        """Test 3x swatch count clamped to [16, 24]"""
        assert get_quantized_pool_size(swatch_count) == expected

    def test_explicit_pool_size_wins(self):
        """Test an explicit positive pool size is used as-is"""
        assert get_quantized_pool_size(5, 40) == 40
        assert get_quantized_pool_size(5, 0) == 16


class TestPopulationScore:
    """Test log-scaled population scoring"""

    def test_population_score(self):
        """Test the largest population scores 1 and empty ones 0"""
        assert get_population_score(10, 10) == pytest.approx(1.0)
        assert get_population_score(1, 3) == pytest.approx(math.log(2) / math.log(4))
        assert get_population_score(0, 10) == 0.0
        assert get_population_score(5, 0) == 0.0


class TestQuantizeCandidates:
    """Test candidate pool construction"""

    def test_candidates_carry_population(self):
        """Test quantized swatches become candidates with populations"""
        packed = [pack_argb_8888(255, 0, 0)] * 3 + [pack_argb_8888(0, 0, 255)]
        candidates = quantize_candidates(packed, 4)

        assert sorted((c.r, c.g, c.b, c.population) for c in candidates) == [
            (0, 0, 248, 1),
            (248, 0, 0, 3)
        ]

    def test_records_quantization_metrics(self):
        """Test each quantization call is timed"""
        quantize_candidates([pack_argb_8888(1, 2, 3)], 4)
        stats = get_metrics_collector().get_operation_stats("color_quantization")

        assert stats["total_calls"] == 1
        assert get_metrics_collector().get_recent_metrics(limit=1)[0]["swatch_count"] == 4

    def test_population_breaks_base_score_ties(self):
        """Test the more populated of two equally scored candidates ranks first"""
        pool = [Candidate(0, 0, 248, population=1), Candidate(248, 0, 0, population=3)]
        ranked = rank_quantized_candidates(pool, 1, create_scoring_profile())

        assert ranked == [pool[1]]


class TestExtractMedianCutPalette:
    """Test median-cut palette extraction"""

    def test_invalid_input_is_empty(self, rgba_buffer):
        """Test missing buffers and zero dimensions yield empty results"""
        buffer = rgba_buffer([(255, 0, 0, 255)])

        for pixels, width, height in [(None, 4, 4), (buffer, 0, 1), (buffer, 1, 0)]:
            result = extract_median_cut_palette(pixels, width, height, 4)
            assert result.to_dict() == {"colors": [], "chosenIndices": []}

    def test_fully_transparent_is_empty(self, rgba_buffer):
        """Test a fully transparent frame yields an empty result"""
        buffer = rgba_buffer([(255, 0, 0, 0), (0, 255, 0, 0), (0, 0, 255, 0), (255, 255, 0, 0)])
        assert extract_median_cut_palette(buffer, 2, 2, 4).is_empty

    def test_deterministic_fixture(self, rgba_buffer):
        """Test a small fixed frame yields exact quantized colors"""
        buffer = rgba_buffer([(255, 0, 0, 255)] * 3 + [(0, 0, 255, 255)])
        options = MedianCutOptions(quantized_pool_size=4, max_quantizer_pixels=12000)

        result = extract_median_cut_palette(buffer, 2, 2, 2, options)

        assert result.chosen_indices == []
        assert result.colors == [RgbColor(248, 0, 0), RgbColor(0, 0, 248)]
        for color in result.colors:
            assert color.r % 8 == 0 and color.g % 8 == 0 and color.b % 8 == 0

    def test_non_positive_swatch_count_is_clamped(self, rgba_buffer):
        """Test swatch_count 0 still yields one color"""
        buffer = rgba_buffer([(255, 0, 0, 255), (0, 0, 255, 255)])
        options = MedianCutOptions(quantized_pool_size=2)

        result = extract_median_cut_palette(buffer, 2, 1, 0, options)

        assert result.chosen_indices == []
        assert len(result.colors) == 1

    def test_fewer_distinct_colors_than_requested(self, solid_frame):
        """Test a single-color frame returns a single color"""
        result = extract_median_cut_palette(solid_frame(8, 8, (64, 128, 192, 255)), 8, 8, 5)
        assert result.colors == [RgbColor(64, 128, 192)]

    def test_near_white_toggle(self, rgba_buffer):
        """Test the near-white toggle removes white from the pool"""
        buffer = rgba_buffer([(255, 255, 255, 255)] * 3 + [(255, 0, 0, 255)])
        options = MedianCutOptions(ignore_near_white=True)

        result = extract_median_cut_palette(buffer, 2, 2, 2, options)

        assert result.colors == [RgbColor(248, 0, 0)]

    def test_everything_filtered_is_empty(self, solid_frame):
        """Test an empty candidate pool yields an empty result"""
        options = MedianCutOptions(ignore_low_saturation=True)
        result = extract_median_cut_palette(solid_frame(4, 4, (90, 90, 90, 255)), 4, 4, 3, options)

        assert result.is_empty
