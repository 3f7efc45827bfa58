"""
Median-cut palette extraction.

Packs a strided sample of the frame, quantizes it with the ColorCutQuantizer
into an oversized candidate pool, and ranks the pool with the palette scorer
softly weighted by how many pixels each swatch covers.
"""

import math
from typing import List, Optional

from loguru import logger

from paletcam.schemas import ExtractionResult, MedianCutOptions
from paletcam.services.observability import performance_tracked
from .color_utils import Candidate
from .pixel_pack import pack_pixels
from .quantizer import ColorCutQuantizer, SwatchFilter, build_filters
from .scoring import (
    RarityMap,
    ScoringProfile,
    build_hue_rarity_map,
    create_scoring_profile,
    score_candidate,
    select_greedy
)

DEFAULT_QUANTIZED_POOL_SIZE = 16
QUANTIZED_POOL_MULTIPLIER = 3
MAX_QUANTIZED_POOL_SIZE = 24
POPULATION_WEIGHT = 0.15
BASE_SCORE_WEIGHT = 1 - POPULATION_WEIGHT


def get_quantized_pool_size(swatch_count: int, requested_pool_size: Optional[int] = None) -> int:
    """Explicit pool size if given, else 3x the swatch count clamped to [16, 24]."""
    if requested_pool_size is not None and requested_pool_size > 0:
        return int(requested_pool_size)

    scaled_pool_size = swatch_count * QUANTIZED_POOL_MULTIPLIER
    return max(DEFAULT_QUANTIZED_POOL_SIZE, min(MAX_QUANTIZED_POOL_SIZE, scaled_pool_size))


def get_population_score(population: int, max_population: int) -> float:
    if max_population <= 0 or population <= 0:
        return 0.0
    return math.log1p(population) / math.log1p(max_population)


def score_median_cut_candidate(candidate: Candidate, chosen_colors: List, rarity_map: RarityMap,
                               max_population: int, profile: ScoringProfile) -> float:
    base_score = score_candidate(candidate, chosen_colors, rarity_map, profile)
    population_score = get_population_score(candidate.population or 0, max_population)
    return BASE_SCORE_WEIGHT * base_score + POPULATION_WEIGHT * population_score


@performance_tracked("color_quantization", swatch_count_arg="max_colors")
def quantize_candidates(packed_pixels, max_colors: int,
                        filters: Optional[List[SwatchFilter]] = None) -> List[Candidate]:
    """Quantize packed pixels into candidates, dropping repeated RGB triples."""
    swatches = ColorCutQuantizer(packed_pixels, max_colors, filters).get_quantized_colors()

    seen = set()
    candidate_pool = []
    for swatch in swatches:
        key = (swatch.red, swatch.green, swatch.blue)
        if key in seen:
            continue
        seen.add(key)
        candidate_pool.append(Candidate(*key, population=swatch.population))

    return candidate_pool


def rank_quantized_candidates(candidate_pool: List[Candidate], swatch_count: int,
                              profile: ScoringProfile) -> List[Candidate]:
    rarity_map = build_hue_rarity_map(candidate_pool)
    max_population = max((candidate.population or 0 for candidate in candidate_pool), default=0)

    chosen_indices = select_greedy(
        candidate_pool,
        swatch_count,
        lambda candidate, chosen: score_median_cut_candidate(
            candidate, chosen, rarity_map, max_population, profile
        )
    )
    return [candidate_pool[index] for index in chosen_indices]


def extract_median_cut_palette(pixels, frame_width: int, frame_height: int, swatch_count: int,
                               options: Optional[MedianCutOptions] = None,
                               scoring: Optional[ScoringProfile] = None,
                               filters: Optional[List[SwatchFilter]] = None) -> ExtractionResult:
    """
    Extract a palette through pixel packing, median-cut quantization and ranking.

    Args:
        pixels: Flat RGBA buffer
        frame_width: Frame width in pixels
        frame_height: Frame height in pixels
        swatch_count: Number of colors to return (at least 1)
        options: Pool size, pixel budget and allow-list toggles
        scoring: Normalized scoring profile
        filters: Extra allow-list filters for the quantizer

    Returns:
        Ranked colors; chosen_indices is always empty
    """
    options = options or MedianCutOptions()
    swatch_count = max(1, swatch_count)

    if pixels is None or frame_width <= 0 or frame_height <= 0:
        return ExtractionResult.empty()

    packed_pixels = pack_pixels(pixels, frame_width, frame_height,
                                max_pixels=options.max_quantizer_pixels)
    if packed_pixels.size == 0:
        logger.debug("No opaque pixels to quantize")
        return ExtractionResult.empty()

    target_pool_size = max(swatch_count, get_quantized_pool_size(swatch_count, options.quantized_pool_size))
    active_filters = build_filters(
        ignore_near_white=options.ignore_near_white,
        ignore_near_black=options.ignore_near_black,
        ignore_low_saturation=options.ignore_low_saturation
    ) + list(filters or [])

    candidate_pool = quantize_candidates(packed_pixels, target_pool_size, active_filters)
    if not candidate_pool:
        return ExtractionResult.empty()

    chosen = rank_quantized_candidates(candidate_pool, swatch_count, scoring or create_scoring_profile())

    logger.debug(f"Median-cut extraction ranked {len(candidate_pool)} candidates "
                 f"(pool target {target_pool_size}) into {len(chosen)} colors")
    return ExtractionResult(colors=[candidate.to_rgb() for candidate in chosen], chosen_indices=[])
