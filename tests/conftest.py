"""
Test configuration and fixtures for the Paletcam palette engine tests.
"""
import numpy as np
import pytest

from paletcam.services.observability import get_metrics_collector
from paletcam.services.palette import settings as settings_module


def build_rgba_buffer(pixels):
    """Flatten a list of (r, g, b, a) tuples into an RGBA byte buffer."""
    return bytes(channel for pixel in pixels for channel in pixel)


def build_solid_frame(width, height, color=(0, 0, 0, 255)):
    """Flat uint8 RGBA array of a single color."""
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[:, :] = color
    return frame.reshape(-1)


@pytest.fixture
def rgba_buffer():
    """Builder for RGBA byte buffers from pixel tuples."""
    return build_rgba_buffer


@pytest.fixture
def solid_frame():
    """Builder for single-color RGBA frames."""
    return build_solid_frame


@pytest.fixture
def split_frame():
    """80x60 frame, red on the left half and blue on the right half."""
    frame = np.zeros((60, 80, 4), dtype=np.uint8)
    frame[:, :40] = (255, 0, 0, 255)
    frame[:, 40:] = (0, 0, 255, 255)
    return frame.reshape(-1)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()


@pytest.fixture(autouse=True)
def reset_settings_store(monkeypatch):
    """Give every test a fresh process-wide settings store."""
    monkeypatch.setattr(settings_module, "_settings_store", None)
