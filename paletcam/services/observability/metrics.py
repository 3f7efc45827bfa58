"""
Palette engine metrics.

Times engine operations (extraction, quantization) and tracks palette
yield per algorithm: how many colors were requested, how many came back
and how often a frame produced no palette at all. Everything is kept in
memory with bounded history so the preview loop can call it every frame.
"""

import inspect
import threading
import time
from collections import defaultdict, deque
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from functools import wraps
from typing import Any, Deque, Dict, List, Optional

import numpy as np
import psutil
from loguru import logger

from paletcam.config import config


@dataclass
class PerformanceMetrics:
    """Timing sample for one engine operation."""
    operation_name: str
    duration_ms: float
    memory_usage_mb: float
    pixel_count: int
    swatch_count: int
    timestamp: float
    error: Optional[str] = None


@dataclass
class PaletteMetrics:
    """Outcome of one extract() call."""
    algorithm: str
    requested_colors: int
    returned_colors: int
    frame_width: int
    frame_height: int

    @property
    def is_empty(self) -> bool:
        return self.returned_colors == 0

    @property
    def shortfall(self) -> int:
        """Colors requested but not delivered (too few distinct candidates)."""
        return max(0, self.requested_colors - self.returned_colors)


def _duration_summary(durations: List[float]) -> Dict[str, float]:
    samples = np.asarray(durations, dtype=np.float64)
    return {
        'mean_ms': float(samples.mean()),
        'median_ms': float(np.median(samples)),
        'p95_ms': float(np.percentile(samples, 95)),
        'max_ms': float(samples.max())
    }


class MetricsCollector:
    """
    Thread-safe in-memory store for engine metrics.

    Timings are grouped by operation name with a bounded window of recent
    durations per operation; palette outcomes are grouped by algorithm.
    """

    def __init__(self, max_history: int = 1000, max_samples_per_operation: int = 100):
        self.max_history = max_history
        self.max_samples_per_operation = max_samples_per_operation
        self._lock = threading.Lock()
        self._timings: Deque[PerformanceMetrics] = deque(maxlen=max_history)
        self._calls: Dict[str, int] = defaultdict(int)
        self._failures: Dict[str, int] = defaultdict(int)
        self._windows: Dict[str, Deque[float]] = {}
        self._palettes: Dict[str, Dict[str, int]] = defaultdict(
            lambda: {'extractions': 0, 'empty': 0, 'requested': 0, 'returned': 0}
        )

    def record_performance(self, metrics: PerformanceMetrics) -> None:
        """Store one timing sample."""
        name = metrics.operation_name
        with self._lock:
            self._timings.append(metrics)
            self._calls[name] += 1
            if metrics.error:
                self._failures[name] += 1
            window = self._windows.get(name)
            if window is None:
                window = self._windows[name] = deque(maxlen=self.max_samples_per_operation)
            window.append(metrics.duration_ms)

    def record_palette(self, metrics: PaletteMetrics) -> None:
        """Store the outcome of one extraction."""
        with self._lock:
            totals = self._palettes[metrics.algorithm]
            totals['extractions'] += 1
            totals['requested'] += metrics.requested_colors
            totals['returned'] += metrics.returned_colors
            if metrics.is_empty:
                totals['empty'] += 1

    def get_operation_stats(self, operation_name: str) -> Dict[str, Any]:
        """Call count, failure rate and duration percentiles for one operation."""
        with self._lock:
            return self._timing_stats(operation_name)

    def _timing_stats(self, operation_name: str) -> Dict[str, Any]:
        window = self._windows.get(operation_name)
        if not window:
            return {}

        calls = self._calls[operation_name]
        failures = self._failures[operation_name]
        return {
            'operation_name': operation_name,
            'total_calls': calls,
            'error_count': failures,
            'error_rate': failures / max(1, calls),
            'duration_stats': _duration_summary(list(window))
        }

    def get_palette_stats(self, algorithm: Optional[str] = None) -> Dict[str, Any]:
        """Palette yield per algorithm, or for a single algorithm."""
        with self._lock:
            names = [algorithm] if algorithm else sorted(self._palettes)
            stats = {}
            for name in names:
                totals = self._palettes.get(name)
                if not totals:
                    continue
                extractions = totals['extractions']
                stats[name] = {
                    'extractions': extractions,
                    'empty_rate': totals['empty'] / extractions,
                    'fill_rate': totals['returned'] / max(1, totals['requested'])
                }
        if algorithm:
            return stats.get(algorithm, {})
        return stats

    def get_all_stats(self) -> Dict[str, Any]:
        """Timing stats for every operation plus palette yield."""
        with self._lock:
            operations = {name: self._timing_stats(name) for name in self._calls}
            total_calls = sum(self._calls.values())
            total_failures = sum(self._failures.values())
        return {
            'operations': operations,
            'palettes': self.get_palette_stats(),
            'total_operations': total_calls,
            'total_errors': total_failures,
            'overall_error_rate': total_failures / max(1, total_calls)
        }

    def get_recent_metrics(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Newest timing samples as dicts, oldest first."""
        with self._lock:
            return [asdict(sample) for sample in list(self._timings)[-limit:]]

    def reset(self) -> None:
        with self._lock:
            self._timings.clear()
            self._calls.clear()
            self._failures.clear()
            self._windows.clear()
            self._palettes.clear()


_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Process-wide collector."""
    return _metrics_collector


def _resident_memory_mb() -> float:
    return psutil.Process().memory_info().rss / (1024 * 1024)


@contextmanager
def performance_monitor(operation_name: str, pixel_count: int = 0, swatch_count: int = 0):
    """
    Time the enclosed block and record it under operation_name.

    Exceptions are recorded as failures and re-raised. Does nothing when
    Config.METRICS_ENABLED is off.
    """
    if not config.METRICS_ENABLED:
        yield
        return

    started = time.perf_counter()
    memory_before = _resident_memory_mb()
    failure = None

    try:
        yield
    except Exception as e:
        failure = str(e)
        raise
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        sample = PerformanceMetrics(
            operation_name=operation_name,
            duration_ms=elapsed_ms,
            memory_usage_mb=max(_resident_memory_mb(), memory_before),
            pixel_count=pixel_count,
            swatch_count=swatch_count,
            timestamp=time.time(),
            error=failure
        )
        _metrics_collector.record_performance(sample)

        if failure:
            logger.error(f"{operation_name} failed after {elapsed_ms:.1f}ms: {failure}")
        else:
            logger.debug(f"{operation_name} took {elapsed_ms:.1f}ms (rss {sample.memory_usage_mb:.1f}MB)")


def record_palette(algorithm: str, requested_colors: int, returned_colors: int,
                   frame_width: int, frame_height: int) -> None:
    """Record an extraction outcome on the process-wide collector."""
    if not config.METRICS_ENABLED:
        return
    _metrics_collector.record_palette(PaletteMetrics(
        algorithm=algorithm,
        requested_colors=requested_colors,
        returned_colors=returned_colors,
        frame_width=frame_width,
        frame_height=frame_height
    ))


def performance_tracked(operation_name: str, swatch_count_arg: str = "swatch_count"):
    """
    Decorator form of performance_monitor.

    The recorded swatch count is read from the argument named
    swatch_count_arg, whether it was passed positionally or by keyword.
    """
    def decorator(func):
        signature = inspect.signature(func)

        @wraps(func)
        def timed(*args, **kwargs):
            bound = signature.bind_partial(*args, **kwargs)
            swatch_count = bound.arguments.get(swatch_count_arg, 0)
            with performance_monitor(operation_name, swatch_count=swatch_count):
                return func(*args, **kwargs)
        return timed
    return decorator
