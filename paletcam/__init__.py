"""
Paletcam palette engine.

Extracts small, visually representative palettes from raw RGBA camera
frames for live preview and capture.
"""

from paletcam.schemas import (
    Algorithm,
    ExtractionOptions,
    ExtractionResult,
    GridOptions,
    MedianCutOptions,
    ScoringWeights
)
from paletcam.services.palette.color_utils import Candidate, RgbColor
from paletcam.services.palette.dominant import get_dominant_color
from paletcam.services.palette.extraction import extract
from paletcam.services.palette.pixel_pack import pack_pixels
from paletcam.services.palette.preview import PreviewFrame, PreviewSession
from paletcam.services.palette.quantizer import ColorCutQuantizer, Swatch
from paletcam.services.palette.scoring import (
    RarityMap,
    ScoringProfile,
    build_hue_rarity_map,
    create_scoring_profile,
    score_candidate
)
from paletcam.services.palette.settings import PaletteSettings, SettingsStore, get_settings_store
from paletcam.services.palette.smoothing import SmoothingState, smooth_colors

__version__ = "1.0.0"

__all__ = [
    'Algorithm',
    'Candidate',
    'ColorCutQuantizer',
    'ExtractionOptions',
    'ExtractionResult',
    'GridOptions',
    'MedianCutOptions',
    'PaletteSettings',
    'PreviewFrame',
    'PreviewSession',
    'RarityMap',
    'RgbColor',
    'ScoringProfile',
    'ScoringWeights',
    'SettingsStore',
    'SmoothingState',
    'Swatch',
    'build_hue_rarity_map',
    'create_scoring_profile',
    'extract',
    'get_dominant_color',
    'get_settings_store',
    'pack_pixels',
    'score_candidate',
    'smooth_colors'
]
