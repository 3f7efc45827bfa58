"""
Color Cut Quantizer

Median-cut color quantization over a reduced-precision histogram, after
AndroidX Palette's ColorCutQuantizer:

- quantizes packed 0xAARRGGBB colors to 5 bits per channel (32768 bins)
- returns the distinct bins directly when there are few enough of them
- otherwise splits color-space boxes (Vboxes) by volume until max_colors
- emits the population-weighted average color of each box
"""

import heapq
import itertools
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

import numpy as np
from loguru import logger

from .color_utils import Hsl, RgbColor, blue_888, green_888, red_888, rgb_to_hsl, round_half_up

QUANTIZE_WORD_WIDTH = 5
QUANTIZE_WORD_MASK = (1 << QUANTIZE_WORD_WIDTH) - 1
HISTOGRAM_SIZE = 1 << (QUANTIZE_WORD_WIDTH * 3)

COMPONENT_RED = -3
COMPONENT_GREEN = -2
COMPONENT_BLUE = -1


def modify_word_width(value, current_width: int, target_width: int):
    """Rescale a channel between bit widths; works on ints and numpy arrays."""
    if target_width > current_width:
        new_value = value << (target_width - current_width)
    else:
        new_value = value >> (current_width - target_width)
    return new_value & ((1 << target_width) - 1)


def quantize_from_rgb_888(color):
    """Quantize packed 8-bit channels into a 15-bit 5-5-5 value."""
    r = modify_word_width((color >> 16) & 0xFF, 8, QUANTIZE_WORD_WIDTH)
    g = modify_word_width((color >> 8) & 0xFF, 8, QUANTIZE_WORD_WIDTH)
    b = modify_word_width(color & 0xFF, 8, QUANTIZE_WORD_WIDTH)
    return (r << (QUANTIZE_WORD_WIDTH * 2)) | (g << QUANTIZE_WORD_WIDTH) | b


def quantized_red(color):
    return (color >> (QUANTIZE_WORD_WIDTH * 2)) & QUANTIZE_WORD_MASK


def quantized_green(color):
    return (color >> QUANTIZE_WORD_WIDTH) & QUANTIZE_WORD_MASK


def quantized_blue(color):
    return color & QUANTIZE_WORD_MASK


def approximate_to_rgb_888(r5: int, g5: int, b5: int) -> int:
    """Expand 5-bit channels back to an opaque 0xFFRRGGBB integer."""
    r8 = modify_word_width(r5, QUANTIZE_WORD_WIDTH, 8)
    g8 = modify_word_width(g5, QUANTIZE_WORD_WIDTH, 8)
    b8 = modify_word_width(b5, QUANTIZE_WORD_WIDTH, 8)
    return (0xFF << 24) | (r8 << 16) | (g8 << 8) | b8


def approximate_to_rgb_888_from_quant(color: int) -> int:
    return approximate_to_rgb_888(
        quantized_red(color), quantized_green(color), quantized_blue(color)
    )


def modify_significant_octet(colors: np.ndarray, dimension: int, lower: int, upper: int) -> None:
    """
    Repack colors[lower..upper] so the chosen component is most significant.

    RED keeps R,G,B; GREEN becomes G,R,B; BLUE becomes B,G,R. Each mapping
    is its own inverse, so calling this twice restores the original values.
    """
    if dimension == COMPONENT_RED:
        return

    window = colors[lower:upper + 1]
    r = quantized_red(window)
    g = quantized_green(window)
    b = quantized_blue(window)

    if dimension == COMPONENT_GREEN:
        window[:] = (g << (QUANTIZE_WORD_WIDTH * 2)) | (r << QUANTIZE_WORD_WIDTH) | b
    elif dimension == COMPONENT_BLUE:
        window[:] = (b << (QUANTIZE_WORD_WIDTH * 2)) | (g << QUANTIZE_WORD_WIDTH) | r


@dataclass(frozen=True)
class Swatch:
    """A quantized color and the number of pixels it represents."""
    rgb: int
    population: int

    @property
    def red(self) -> int:
        return red_888(self.rgb)

    @property
    def green(self) -> int:
        return green_888(self.rgb)

    @property
    def blue(self) -> int:
        return blue_888(self.rgb)

    def to_rgb(self) -> RgbColor:
        return RgbColor.from_packed(self.rgb)


class SwatchFilter(Protocol):
    """Allow-list predicate evaluated on the 8-bit color and its HSL."""

    def is_allowed(self, rgb: int, hsl: Hsl) -> bool:
        ...


class NearWhiteFilter:
    """Reject near-white colors."""

    def __init__(self, max_lightness: float = 0.96):
        self.max_lightness = max_lightness

    def is_allowed(self, rgb: int, hsl: Hsl) -> bool:
        return hsl.l < self.max_lightness


class NearBlackFilter:
    """Reject near-black colors."""

    def __init__(self, min_lightness: float = 0.04):
        self.min_lightness = min_lightness

    def is_allowed(self, rgb: int, hsl: Hsl) -> bool:
        return hsl.l > self.min_lightness


class LowSaturationFilter:
    """Reject washed-out colors."""

    def __init__(self, min_saturation: float = 0.12):
        self.min_saturation = min_saturation

    def is_allowed(self, rgb: int, hsl: Hsl) -> bool:
        return hsl.s > self.min_saturation


def build_filters(ignore_near_white: bool = False,
                  ignore_near_black: bool = False,
                  ignore_low_saturation: bool = False) -> List[SwatchFilter]:
    """Build the standard allow-list filters from toggles."""
    filters: List[SwatchFilter] = []
    if ignore_near_white:
        filters.append(NearWhiteFilter())
    if ignore_near_black:
        filters.append(NearBlackFilter())
    if ignore_low_saturation:
        filters.append(LowSaturationFilter())
    return filters


class Vbox:
    """A box in quantized color space over colors[lower..upper] of its quantizer."""

    def __init__(self, quantizer: "ColorCutQuantizer", lower_index: int, upper_index: int):
        self.quantizer = quantizer
        self.lower = lower_index
        self.upper = upper_index
        self.fit_box()

    @property
    def color_count(self) -> int:
        return 1 + self.upper - self.lower

    def can_split(self) -> bool:
        return self.color_count > 1

    @property
    def volume(self) -> int:
        return ((self.max_red - self.min_red + 1)
                * (self.max_green - self.min_green + 1)
                * (self.max_blue - self.min_blue + 1))

    def _window(self) -> np.ndarray:
        return self.quantizer.colors[self.lower:self.upper + 1]

    def fit_box(self) -> None:
        """Recompute channel bounds and population from the current range."""
        window = self._window()
        reds = quantized_red(window)
        greens = quantized_green(window)
        blues = quantized_blue(window)

        self.min_red, self.max_red = int(reds.min()), int(reds.max())
        self.min_green, self.max_green = int(greens.min()), int(greens.max())
        self.min_blue, self.max_blue = int(blues.min()), int(blues.max())
        self.population = int(self.quantizer.histogram[window].sum())

    def split_box(self) -> "Vbox":
        """Split at the population median; self keeps the lower half."""
        if not self.can_split():
            raise ValueError("Cannot split a box with only 1 color")

        split_point = self.find_split_point()
        new_box = Vbox(self.quantizer, split_point + 1, self.upper)

        self.upper = split_point
        self.fit_box()
        return new_box

    def get_longest_color_dimension(self) -> int:
        red_length = self.max_red - self.min_red
        green_length = self.max_green - self.min_green
        blue_length = self.max_blue - self.min_blue

        if red_length >= green_length and red_length >= blue_length:
            return COMPONENT_RED
        if green_length >= red_length and green_length >= blue_length:
            return COMPONENT_GREEN
        return COMPONENT_BLUE

    def find_split_point(self) -> int:
        longest_dimension = self.get_longest_color_dimension()
        colors = self.quantizer.colors

        modify_significant_octet(colors, longest_dimension, self.lower, self.upper)
        # In-place sort of the view
        colors[self.lower:self.upper + 1].sort()
        modify_significant_octet(colors, longest_dimension, self.lower, self.upper)

        cumulative = np.cumsum(self.quantizer.histogram[self._window()])
        mid_population = self.population // 2
        reached = np.flatnonzero(cumulative >= mid_population)
        if reached.size == 0:
            return self.lower
        return min(self.upper - 1, self.lower + int(reached[0]))

    def get_average_color(self) -> Swatch:
        window = self._window()
        populations = self.quantizer.histogram[window]
        total = int(populations.sum())

        red_mean = round_half_up(int((populations * quantized_red(window)).sum()) / total)
        green_mean = round_half_up(int((populations * quantized_green(window)).sum()) / total)
        blue_mean = round_half_up(int((populations * quantized_blue(window)).sum()) / total)

        return Swatch(approximate_to_rgb_888(red_mean, green_mean, blue_mean), total)


class ColorCutQuantizer:
    """
    Reduce an arbitrary set of packed colors to at most max_colors swatches.

    The quantizer owns its working arrays: the input pixels are rewritten in
    place with their quantized values, and Vboxes partition `colors` into
    disjoint, monotonically shrinking index ranges.
    """

    def __init__(self, pixels, max_colors: int, filters: Optional[Iterable[SwatchFilter]] = None):
        self.filters = list(filters or [])
        max_colors = max(1, int(max_colors or 1))

        packed = np.asarray(pixels, dtype=np.int64).reshape(-1)
        quantized = quantize_from_rgb_888(packed)
        self._overwrite_input(pixels, quantized)

        self.histogram = np.bincount(quantized, minlength=HISTOGRAM_SIZE).astype(np.int64)

        if self.filters:
            for color in np.flatnonzero(self.histogram):
                if self._should_ignore_quantized_color(int(color)):
                    self.histogram[color] = 0

        self.colors = np.flatnonzero(self.histogram).astype(np.int64)
        distinct_count = int(self.colors.size)

        if distinct_count <= max_colors:
            self.quantized_colors = [
                Swatch(approximate_to_rgb_888_from_quant(int(color)), int(self.histogram[color]))
                for color in self.colors
            ]
        else:
            self.quantized_colors = self._quantize_pixels(max_colors)

        logger.debug(f"Quantized {packed.size} pixels: {distinct_count} distinct bins -> "
                     f"{len(self.quantized_colors)} swatches (max_colors={max_colors})")

    @staticmethod
    def _overwrite_input(pixels, quantized: np.ndarray) -> None:
        if isinstance(pixels, np.ndarray) and pixels.dtype.kind in "iu" and pixels.flags.writeable:
            pixels.reshape(-1)[:] = quantized
        elif isinstance(pixels, list):
            pixels[:] = quantized.tolist()

    def get_quantized_colors(self) -> List[Swatch]:
        return self.quantized_colors

    def _quantize_pixels(self, max_colors: int) -> List[Swatch]:
        # Max-heap by volume; the sequence number keeps equal volumes in push order
        heap: list = []
        sequence = itertools.count()

        def push(vbox: Vbox) -> None:
            heapq.heappush(heap, (-vbox.volume, next(sequence), vbox))

        push(Vbox(self, 0, self.colors.size - 1))
        self._split_boxes(heap, push, max_colors)
        return self._generate_average_colors(entry[2] for entry in heap)

    @staticmethod
    def _split_boxes(heap: list, push, max_size: int) -> None:
        while len(heap) < max_size:
            if not heap:
                return
            vbox = heapq.heappop(heap)[2]
            if not vbox.can_split():
                push(vbox)
                return
            push(vbox.split_box())
            push(vbox)

    def _generate_average_colors(self, vboxes: Iterable[Vbox]) -> List[Swatch]:
        swatches = []
        for vbox in vboxes:
            swatch = vbox.get_average_color()
            if not self._should_ignore_swatch(swatch):
                swatches.append(swatch)
        return swatches

    def _is_rejected(self, rgb: int) -> bool:
        hsl = rgb_to_hsl(RgbColor.from_packed(rgb))
        return any(not swatch_filter.is_allowed(rgb, hsl) for swatch_filter in self.filters)

    def _should_ignore_quantized_color(self, color: int) -> bool:
        return self._is_rejected(approximate_to_rgb_888_from_quant(color))

    def _should_ignore_swatch(self, swatch: Swatch) -> bool:
        if not self.filters:
            return False
        return self._is_rejected(swatch.rgb)
