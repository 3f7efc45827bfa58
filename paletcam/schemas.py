"""
Paletcam Schemas
Pydantic models for extraction options plus the extraction result container.

Out-of-range or malformed option values never raise: they are clamped or
replaced by their defaults before validation.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from paletcam.services.palette.color_utils import RgbColor

SAMPLE_ROW_COUNT = 5
SAMPLE_COL_COUNT = 8
SAMPLE_RADIUS = 4
DEFAULT_MAX_QUANTIZER_PIXELS = 12_000


class Algorithm(str, Enum):
    """Palette extraction algorithms."""
    GRID = "grid"
    MEDIAN_CUT = "median-cut"

    @classmethod
    def normalize(cls, value) -> "Algorithm":
        """Anything other than the grid identifier selects median-cut."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.GRID.value:
            return cls.GRID
        return cls.MEDIAN_CUT


def _positive_int_or(value, fallback):
    try:
        numeric_value = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(numeric_value) or numeric_value <= 0:
        return fallback
    return int(math.floor(numeric_value))


def _non_negative_float_or_zero(value) -> float:
    try:
        numeric_value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(numeric_value) or numeric_value < 0:
        return 0.0
    return numeric_value


def _sub_model_payload(value):
    if isinstance(value, (dict, BaseModel)):
        return value
    return {}


class _OptionsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class GridOptions(_OptionsModel):
    """Settings for the grid sampler."""
    algorithm: Algorithm = Field(Algorithm.GRID, exclude=True)
    sample_row_count: int = Field(
        SAMPLE_ROW_COUNT,
        validation_alias=AliasChoices("sample_row_count", "sampleRowCount"),
        description="Number of evenly spaced sample rows"
    )
    sample_col_count: int = Field(
        SAMPLE_COL_COUNT,
        validation_alias=AliasChoices("sample_col_count", "sampleColCount"),
        description="Number of evenly spaced sample columns"
    )
    sample_radius: int = Field(
        SAMPLE_RADIUS,
        validation_alias=AliasChoices("sample_radius", "sampleRadius"),
        description="Radius in pixels of the averaged block around each grid point"
    )

    @field_validator("algorithm", mode="before")
    @classmethod
    def _fixed_algorithm(cls, value):
        return Algorithm.GRID

    @field_validator("sample_row_count", mode="before")
    @classmethod
    def _clamp_rows(cls, value):
        return _positive_int_or(value, SAMPLE_ROW_COUNT)

    @field_validator("sample_col_count", mode="before")
    @classmethod
    def _clamp_cols(cls, value):
        return _positive_int_or(value, SAMPLE_COL_COUNT)

    @field_validator("sample_radius", mode="before")
    @classmethod
    def _clamp_radius(cls, value):
        return _positive_int_or(value, SAMPLE_RADIUS)


class MedianCutOptions(_OptionsModel):
    """Settings for the pixel packer, quantizer and population-weighted ranking."""
    algorithm: Algorithm = Field(Algorithm.MEDIAN_CUT, exclude=True)
    quantized_pool_size: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("quantized_pool_size", "quantizedPoolSize"),
        description="Quantizer swatch budget; derived from the swatch count when unset"
    )
    max_quantizer_pixels: int = Field(
        DEFAULT_MAX_QUANTIZER_PIXELS,
        validation_alias=AliasChoices("max_quantizer_pixels", "maxQuantizerPixels"),
        description="Upper bound on pixels fed to the quantizer"
    )
    ignore_near_white: bool = Field(
        False, validation_alias=AliasChoices("ignore_near_white", "ignoreNearWhite")
    )
    ignore_near_black: bool = Field(
        False, validation_alias=AliasChoices("ignore_near_black", "ignoreNearBlack")
    )
    ignore_low_saturation: bool = Field(
        False, validation_alias=AliasChoices("ignore_low_saturation", "ignoreLowSaturation")
    )

    @field_validator("algorithm", mode="before")
    @classmethod
    def _fixed_algorithm(cls, value):
        return Algorithm.MEDIAN_CUT

    @field_validator("quantized_pool_size", mode="before")
    @classmethod
    def _clamp_pool_size(cls, value):
        return _positive_int_or(value, None)

    @field_validator("max_quantizer_pixels", mode="before")
    @classmethod
    def _clamp_max_pixels(cls, value):
        return _positive_int_or(value, DEFAULT_MAX_QUANTIZER_PIXELS)

    @field_validator("ignore_near_white", "ignore_near_black", "ignore_low_saturation", mode="before")
    @classmethod
    def _coerce_toggle(cls, value):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)


class ScoringWeights(_OptionsModel):
    """Raw, unnormalized scoring weights."""
    chroma: float = Field(
        25.0, validation_alias=AliasChoices("chroma", "chromaWeight", "chroma_weight")
    )
    luma_spread: float = Field(
        15.0,
        validation_alias=AliasChoices("luma_spread", "lumaSpread", "lumaSpreadWeight", "luma_spread_weight")
    )
    rarity: float = Field(
        20.0, validation_alias=AliasChoices("rarity", "rarityWeight", "rarity_weight")
    )
    diversity: float = Field(
        40.0, validation_alias=AliasChoices("diversity", "diversityWeight", "diversity_weight")
    )

    @field_validator("chroma", "luma_spread", "rarity", "diversity", mode="before")
    @classmethod
    def _clamp_weight(cls, value):
        return _non_negative_float_or_zero(value)


AlgorithmSettings = Union[GridOptions, MedianCutOptions]


class ExtractionOptions(_OptionsModel):
    """Options for a single extraction call."""
    algorithm: Algorithm = Field(Algorithm.MEDIAN_CUT, description="Extraction algorithm")
    grid: GridOptions = Field(default_factory=GridOptions)
    median_cut: MedianCutOptions = Field(
        default_factory=MedianCutOptions,
        validation_alias=AliasChoices("median_cut", "medianCut")
    )
    scoring: ScoringWeights = Field(default_factory=ScoringWeights)

    @field_validator("algorithm", mode="before")
    @classmethod
    def _normalize_algorithm(cls, value):
        return Algorithm.normalize(value)

    @field_validator("grid", "median_cut", "scoring", mode="before")
    @classmethod
    def _default_sub_settings(cls, value):
        return _sub_model_payload(value)

    @property
    def active_settings(self) -> AlgorithmSettings:
        """Settings of the selected algorithm, tagged by its `algorithm` field."""
        if self.algorithm is Algorithm.GRID:
            return self.grid
        return self.median_cut


@dataclass
class ExtractionResult:
    """Palette colors plus, for grid extraction, the chosen grid cell indices."""
    colors: List[RgbColor] = field(default_factory=list)
    chosen_indices: List[int] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ExtractionResult":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.colors

    def to_dict(self) -> dict:
        return {
            "colors": [color.to_dict() for color in self.colors],
            "chosenIndices": list(self.chosen_indices)
        }
