"""
Palette Scoring Module

Scores palette candidates by chroma, lightness spread, hue rarity within
the candidate pool and distance from colors already chosen, and greedily
selects the best-scoring candidates.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from loguru import logger

from .color_utils import MAX_RGB_DISTANCE, Hsl, color_distance, rgb_to_hsl

HUE_BUCKET_COUNT = 12
GREY_SATURATION_THRESHOLD = 0.08

DEFAULT_SCORING_WEIGHTS = {
    "chroma": 25.0,
    "luma_spread": 15.0,
    "rarity": 20.0,
    "diversity": 40.0
}

# camelCase keys accepted from settings payloads
_WEIGHT_ALIASES = {
    "chroma": ("chroma", "chromaWeight", "chroma_weight"),
    "luma_spread": ("luma_spread", "lumaSpread", "lumaSpreadWeight", "luma_spread_weight"),
    "rarity": ("rarity", "rarityWeight", "rarity_weight"),
    "diversity": ("diversity", "diversityWeight", "diversity_weight")
}


@dataclass(frozen=True)
class ScoringProfile:
    """Normalized scoring weights; always sums to 1."""
    chroma: float
    luma_spread: float
    rarity: float
    diversity: float

    @property
    def total(self) -> float:
        return self.chroma + self.luma_spread + self.rarity + self.diversity


@dataclass
class RarityMap:
    """Hue histogram over a candidate pool, 30 degrees per bucket."""
    buckets: List[int] = field(default_factory=lambda: [0] * HUE_BUCKET_COUNT)
    max_count: int = 1
    bucket_count: int = HUE_BUCKET_COUNT

    def bucket_for(self, hue: float) -> int:
        return int(math.floor(hue / (360.0 / self.bucket_count))) % self.bucket_count


def _sanitize_weight(value) -> float:
    try:
        numeric_value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(numeric_value) or numeric_value < 0:
        return 0.0
    return numeric_value


def _raw_weights(weights) -> dict:
    if weights is None:
        return dict(DEFAULT_SCORING_WEIGHTS)

    if not isinstance(weights, Mapping):
        # ScoringWeights model or any object exposing the weight attributes
        weights = {name: getattr(weights, name, DEFAULT_SCORING_WEIGHTS[name])
                   for name in DEFAULT_SCORING_WEIGHTS}

    raw = {}
    for name, aliases in _WEIGHT_ALIASES.items():
        value = DEFAULT_SCORING_WEIGHTS[name]
        for alias in aliases:
            if alias in weights:
                value = weights[alias]
                break
        raw[name] = value
    return raw


def create_scoring_profile(weights=None) -> ScoringProfile:
    """
    Normalize raw scoring weights into a profile summing to 1.

    Missing weights take their defaults, negative or non-numeric weights
    count as zero, and an all-zero input falls back to the default
    distribution.
    """
    raw = {name: _sanitize_weight(value) for name, value in _raw_weights(weights).items()}
    total = sum(raw.values())

    if total <= 0:
        logger.debug("All scoring weights are zero, using default distribution")
        raw = dict(DEFAULT_SCORING_WEIGHTS)
        total = sum(raw.values())

    return ScoringProfile(
        chroma=raw["chroma"] / total,
        luma_spread=raw["luma_spread"] / total,
        rarity=raw["rarity"] / total,
        diversity=raw["diversity"] / total
    )


def build_hue_rarity_map(pool: Sequence) -> RarityMap:
    """Bucket the saturated colors of a pool by hue; greys are skipped."""
    rarity_map = RarityMap()

    for color in pool:
        hsl = rgb_to_hsl(color)
        if hsl.s < GREY_SATURATION_THRESHOLD:
            continue
        rarity_map.buckets[rarity_map.bucket_for(hsl.h)] += 1

    rarity_map.max_count = max(1, *rarity_map.buckets)
    return rarity_map


def hue_rarity(hsl: Hsl, rarity_map: RarityMap) -> float:
    if hsl.s < GREY_SATURATION_THRESHOLD:
        return 0.0
    bucket = rarity_map.bucket_for(hsl.h)
    return 1.0 - rarity_map.buckets[bucket] / rarity_map.max_count


def diversity_score(candidate, chosen_colors: Sequence) -> float:
    if not chosen_colors:
        return 0.0
    min_distance = min(color_distance(candidate, chosen) for chosen in chosen_colors)
    return min(1.0, min_distance / MAX_RGB_DISTANCE)


def score_candidate(candidate, chosen_colors: Sequence, rarity_map: RarityMap,
                    profile: Optional[ScoringProfile] = None) -> float:
    """
    Score a candidate color; higher is more interesting.

    Args:
        candidate: Color with r/g/b attributes
        chosen_colors: Colors already selected for the palette
        rarity_map: Hue histogram of the candidate pool
        profile: Normalized weights (defaults when omitted)

    Returns:
        Weighted sum of chroma, lightness spread, hue rarity and diversity,
        each in [0, 1]
    """
    profile = profile or create_scoring_profile()
    hsl = rgb_to_hsl(candidate)

    chroma = hsl.s
    luma_spread = abs(hsl.l - 0.5) / 0.5
    rarity = hue_rarity(hsl, rarity_map)
    diversity = diversity_score(candidate, chosen_colors)

    return (profile.chroma * chroma
            + profile.luma_spread * luma_spread
            + profile.rarity * rarity
            + profile.diversity * diversity)


def select_greedy(pool: Sequence, pick_count: int,
                  score_fn: Callable[[object, List], float]) -> List[int]:
    """
    Greedily pick up to pick_count pool indices.

    Each round rescores every unused candidate against the colors chosen so
    far and takes the strict maximum; on ties the earliest index wins.
    """
    chosen_indices: List[int] = []
    chosen_colors: List = []
    used = set()

    for _ in range(min(pick_count, len(pool))):
        best_index = -1
        best_score = -math.inf

        for index, candidate in enumerate(pool):
            if index in used:
                continue
            score = score_fn(candidate, chosen_colors)
            if score > best_score:
                best_score = score
                best_index = index

        if best_index < 0:
            break

        used.add(best_index)
        chosen_indices.append(best_index)
        chosen_colors.append(pool[best_index])

    return chosen_indices
