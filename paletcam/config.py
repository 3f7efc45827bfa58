"""
Paletcam Configuration
Manages environment variables and defaults for the palette engine.
"""
import os
from typing import Literal


class Config:
    """Configuration class for the Paletcam palette engine."""

    # Logging
    LOG_LEVEL: str = os.environ.get("PALETCAM_LOG_LEVEL", "INFO")

    # Extraction defaults
    DEFAULT_ALGORITHM: Literal["grid", "median-cut"] = os.environ.get("PALETCAM_DEFAULT_ALGORITHM", "median-cut")
    DEFAULT_SWATCH_COUNT: int = int(os.environ.get("PALETCAM_DEFAULT_SWATCH_COUNT", "5"))
    MAX_QUANTIZER_PIXELS: int = int(os.environ.get("PALETCAM_MAX_QUANTIZER_PIXELS", "12000"))

    # Live preview loop
    EXTRACTION_INTERVAL: int = int(os.environ.get("PALETCAM_EXTRACTION_INTERVAL", "10"))
    SMOOTHING_LERP_FACTOR: float = float(os.environ.get("PALETCAM_SMOOTHING_LERP_FACTOR", "0.1"))

    # Observability
    METRICS_ENABLED: bool = bool(int(os.environ.get("PALETCAM_METRICS_ENABLED", "1")))

    SUPPORTED_ALGORITHMS = ["grid", "median-cut"]

    @classmethod
    def validate_algorithm(cls, algorithm: str) -> bool:
        """Validate algorithm identifier."""
        return algorithm in cls.SUPPORTED_ALGORITHMS

    @classmethod
    def validate_swatch_count(cls, swatch_count: int) -> bool:
        """Validate requested palette size."""
        return 1 <= swatch_count <= 12

    @classmethod
    def validate_lerp_factor(cls, lerp_factor: float) -> bool:
        """Validate smoothing interpolation factor."""
        return 0.0 <= lerp_factor <= 1.0

    @classmethod
    def validate_extraction_interval(cls, interval: int) -> bool:
        """Validate the frame interval between extractions."""
        return interval >= 1


# Global config instance
config = Config()
