"""
Paletcam Imaging Utilities
Converts decoded images into the flat RGBA buffers the palette engine consumes.
"""
from dataclasses import dataclass
from typing import Union

import cv2
import numpy as np
from PIL import Image


@dataclass(frozen=True)
class Frame:
    """A flat row-major RGBA buffer plus its dimensions."""
    pixels: np.ndarray
    width: int
    height: int


def rgba_from_array(array: np.ndarray) -> np.ndarray:
    """
    Convert an RGB(A) or grayscale uint8 array to (H, W, 4) RGBA.

    Raises:
        ValueError: For unsupported shapes or dtypes
    """
    if array.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {array.dtype}")

    if array.ndim == 2:
        return cv2.cvtColor(array, cv2.COLOR_GRAY2RGBA)
    if array.ndim == 3 and array.shape[2] == 3:
        return cv2.cvtColor(array, cv2.COLOR_RGB2RGBA)
    if array.ndim == 3 and array.shape[2] == 4:
        return np.ascontiguousarray(array)

    raise ValueError(f"Unsupported image shape: {array.shape}")


def frame_from_image(image: Union[Image.Image, np.ndarray]) -> Frame:
    """
    Build an engine frame from a Pillow image or a numpy array.

    Arrays are interpreted as RGB/RGBA channel order; a missing alpha channel
    is filled with 255.
    """
    if isinstance(image, Image.Image):
        rgba = np.asarray(image.convert("RGBA"), dtype=np.uint8)
    elif isinstance(image, np.ndarray):
        rgba = rgba_from_array(image)
    else:
        raise ValueError(f"Unsupported image type: {type(image).__name__}")

    height, width = rgba.shape[:2]
    return Frame(pixels=rgba.reshape(-1), width=width, height=height)


def frame_from_bgr(image_bgr: np.ndarray) -> Frame:
    """Build an engine frame from an OpenCV BGR or BGRA image."""
    if image_bgr.ndim == 3 and image_bgr.shape[2] == 4:
        return frame_from_image(cv2.cvtColor(image_bgr, cv2.COLOR_BGRA2RGBA))
    return frame_from_image(cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB))
