"""
Color value types and conversions shared by the palette engine.

Provides the immutable RGB value type, HSL conversion, Euclidean RGB
distance, relative luma and packed 0xAARRGGBB helpers.
"""

import colorsys
import math
from dataclasses import dataclass
from typing import Optional, Tuple

MAX_RGB_DISTANCE = math.sqrt(3 * 255 ** 2)

# Relative luminance weights (Rec. 709)
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from negative infinity."""
    return int(math.floor(value + 0.5))


def clamp_channel(value: float) -> int:
    """Round and clamp a channel value into [0, 255]."""
    return max(0, min(255, round_half_up(value)))


@dataclass(frozen=True)
class RgbColor:
    """An 8-bit sRGB color."""
    r: int
    g: int
    b: int

    @classmethod
    def from_floats(cls, r: float, g: float, b: float) -> "RgbColor":
        """Build a color from unrounded channel values."""
        return cls(clamp_channel(r), clamp_channel(g), clamp_channel(b))

    @classmethod
    def from_packed(cls, argb: int) -> "RgbColor":
        """Build a color from a packed 0xAARRGGBB integer."""
        return cls(red_888(argb), green_888(argb), blue_888(argb))

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_dict(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b}

    @property
    def hex(self) -> str:
        return rgb_to_hex(self)


@dataclass(frozen=True)
class Candidate:
    """A candidate swatch, optionally weighted by the pixels it covers."""
    r: int
    g: int
    b: int
    population: Optional[int] = None

    def to_rgb(self) -> RgbColor:
        return RgbColor(self.r, self.g, self.b)


@dataclass(frozen=True)
class Hsl:
    """HSL triple: hue in degrees [0, 360), saturation and lightness in [0, 1]."""
    h: float
    s: float
    l: float


def rgb_to_hsl(color) -> Hsl:
    """Convert anything with r/g/b attributes to HSL."""
    h, l, s = colorsys.rgb_to_hls(color.r / 255.0, color.g / 255.0, color.b / 255.0)
    return Hsl(h=(h * 360.0) % 360.0, s=s, l=l)


def rgb_to_hex(color) -> str:
    """Format a color as #RRGGBB."""
    return f"#{color.r:02X}{color.g:02X}{color.b:02X}"


def color_distance(first, second) -> float:
    """Euclidean distance between two colors in RGB space."""
    return math.sqrt(color_distance_squared(first, second))


def color_distance_squared(first, second) -> float:
    delta_r = first.r - second.r
    delta_g = first.g - second.g
    delta_b = first.b - second.b
    return delta_r * delta_r + delta_g * delta_g + delta_b * delta_b


def color_luma(color) -> float:
    """Relative luma on the 0-255 scale."""
    return LUMA_WEIGHTS[0] * color.r + LUMA_WEIGHTS[1] * color.g + LUMA_WEIGHTS[2] * color.b


# ----- packed 0xAARRGGBB helpers -----

def pack_argb_8888(red: int, green: int, blue: int) -> int:
    """Pack channels into an opaque 0xFFRRGGBB integer."""
    return (0xFF << 24) | ((red & 0xFF) << 16) | ((green & 0xFF) << 8) | (blue & 0xFF)


def red_888(argb: int) -> int:
    return (argb >> 16) & 0xFF


def green_888(argb: int) -> int:
    return (argb >> 8) & 0xFF


def blue_888(argb: int) -> int:
    return argb & 0xFF
