"""
Pixel packing for the color quantizer.

Downsamples an RGBA frame on a square stride and packs the opaque pixels
into 0xFFRRGGBB integers, keeping the quantizer input bounded for live
preview use.
"""

import math

import numpy as np
from loguru import logger

DEFAULT_MAX_SAMPLED_PIXELS = 12_000


def clamp_positive_integer(value, fallback_value: int) -> int:
    """Return floor(value) if it is a finite positive number, else the fallback."""
    try:
        numeric_value = float(value)
    except (TypeError, ValueError):
        return fallback_value

    if not math.isfinite(numeric_value) or numeric_value <= 0:
        return fallback_value

    return int(math.floor(numeric_value))


def compute_pixel_stride(frame_width: int, frame_height: int, max_pixels: int) -> int:
    """Square sampling stride that keeps roughly max_pixels samples."""
    total_pixels = frame_width * frame_height
    if total_pixels <= 0:
        return 1

    return max(1, math.ceil(math.sqrt(total_pixels / max_pixels)))


def as_rgba_frame(pixels, frame_width: int, frame_height: int):
    """
    View a flat RGBA buffer as an (H, W, 4) uint8 array.

    Returns None when the buffer is missing, the dimensions are not
    positive, or the buffer is too short for the dimensions.
    """
    if pixels is None or frame_width <= 0 or frame_height <= 0:
        return None

    if isinstance(pixels, (bytes, bytearray, memoryview)):
        flat = np.frombuffer(pixels, dtype=np.uint8)
    else:
        flat = np.asarray(pixels, dtype=np.uint8).reshape(-1)
    expected = frame_width * frame_height * 4
    if flat.size < expected:
        logger.debug(f"Pixel buffer too short: {flat.size} < {expected} for {frame_width}x{frame_height}")
        return None

    return flat[:expected].reshape(frame_height, frame_width, 4)


def pack_pixels(pixels, frame_width: int, frame_height: int,
                max_pixels: int = DEFAULT_MAX_SAMPLED_PIXELS) -> np.ndarray:
    """
    Pack a strided sample of an RGBA frame into 0xFFRRGGBB integers.

    Args:
        pixels: Flat RGBA byte buffer, row-major
        frame_width: Frame width in pixels
        frame_height: Frame height in pixels
        max_pixels: Upper bound on sampled pixels used to derive the stride

    Returns:
        int64 array of packed colors; fully transparent pixels are skipped.
        Empty when the input is invalid or fully transparent.
    """
    frame = as_rgba_frame(pixels, frame_width, frame_height)
    if frame is None:
        return np.zeros(0, dtype=np.int64)

    bounded_max_pixels = clamp_positive_integer(max_pixels, DEFAULT_MAX_SAMPLED_PIXELS)
    stride = compute_pixel_stride(frame_width, frame_height, bounded_max_pixels)

    sampled = frame[::stride, ::stride].reshape(-1, 4)
    opaque = sampled[sampled[:, 3] != 0].astype(np.int64)

    packed = (0xFF << 24) | (opaque[:, 0] << 16) | (opaque[:, 1] << 8) | opaque[:, 2]

    logger.debug(f"Packed {packed.size}/{sampled.shape[0]} sampled pixels "
                 f"(stride={stride}, frame={frame_width}x{frame_height})")
    return packed
