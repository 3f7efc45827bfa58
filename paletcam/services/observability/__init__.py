"""
Observability for the Paletcam palette engine.

Operation timings and palette yield for calls made from the preview loop.
"""

from .metrics import (
    MetricsCollector,
    PaletteMetrics,
    PerformanceMetrics,
    get_metrics_collector,
    performance_monitor,
    performance_tracked,
    record_palette
)

__all__ = [
    'MetricsCollector',
    'PaletteMetrics',
    'PerformanceMetrics',
    'get_metrics_collector',
    'performance_monitor',
    'performance_tracked',
    'record_palette'
]
