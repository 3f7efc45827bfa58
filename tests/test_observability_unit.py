"""
Unit tests for metrics collection and structured logging.
"""

import pytest

from paletcam.config import Config, config
from paletcam.services.observability import (
    MetricsCollector,
    PaletteMetrics,
    PerformanceMetrics,
    get_metrics_collector,
    performance_monitor,
    performance_tracked
)
from paletcam.utils import logging as paletcam_logging
from paletcam.utils.logging import StructuredLogger, configure_logging, get_logger


def metric(name, duration_ms, error=None):
    return PerformanceMetrics(
        operation_name=name,
        duration_ms=duration_ms,
        memory_usage_mb=10.0,
        pixel_count=100,
        swatch_count=5,
        timestamp=0.0,
        error=error
    )


class TestMetricsCollector:
    """Test metric aggregation"""

    def setup_method(self):
        """Set up an isolated collector"""
        self.collector = MetricsCollector(max_history=3, max_samples_per_operation=10)

    def test_operation_stats(self):
        """Test per-operation aggregation"""
        for duration in (10.0, 20.0, 30.0):
            self.collector.record_performance(metric("extract_grid", duration))
        self.collector.record_performance(metric("extract_grid", 40.0, error="boom"))

        stats = self.collector.get_operation_stats("extract_grid")

        assert stats["total_calls"] == 4
        assert stats["error_count"] == 1
        assert stats["error_rate"] == pytest.approx(0.25)
        assert stats["duration_stats"]["mean_ms"] == pytest.approx(25.0)
        assert stats["duration_stats"]["max_ms"] == pytest.approx(40.0)

    def test_unknown_operation(self):
        """Test an unrecorded operation has no stats"""
        assert self.collector.get_operation_stats("missing") == {}

    def test_history_is_bounded(self):
        """Test recent metrics keep only max_history entries"""
        for duration in range(5):
            self.collector.record_performance(metric("op", float(duration)))

        recent = self.collector.get_recent_metrics(limit=10)
        assert [entry["duration_ms"] for entry in recent] == [2.0, 3.0, 4.0]

    def test_all_stats_and_reset(self):
        """Test totals across operations and reset"""
        self.collector.record_performance(metric("a", 1.0))
        self.collector.record_performance(metric("b", 1.0, error="x"))

        stats = self.collector.get_all_stats()
        assert stats["total_operations"] == 2
        assert stats["total_errors"] == 1
        assert set(stats["operations"]) == {"a", "b"}

        self.collector.reset()
        assert self.collector.get_all_stats()["total_operations"] == 0

    def test_palette_yield(self):
        """Test palette outcomes aggregate per algorithm"""
        self.collector.record_palette(PaletteMetrics("grid", 5, 5, 80, 60))
        self.collector.record_palette(PaletteMetrics("grid", 5, 0, 80, 60))
        self.collector.record_palette(PaletteMetrics("median-cut", 4, 2, 80, 60))

        grid = self.collector.get_palette_stats("grid")
        assert grid["extractions"] == 2
        assert grid["empty_rate"] == pytest.approx(0.5)
        assert grid["fill_rate"] == pytest.approx(0.5)
        assert set(self.collector.get_palette_stats()) == {"grid", "median-cut"}
        assert self.collector.get_palette_stats("octree") == {}
        assert self.collector.get_all_stats()["palettes"]["median-cut"]["fill_rate"] == pytest.approx(0.5)

    def test_palette_shortfall(self):
        """Test shortfall counts undelivered colors"""
        assert PaletteMetrics("grid", 5, 3, 1, 1).shortfall == 2
        assert PaletteMetrics("grid", 5, 0, 1, 1).is_empty


class TestPerformanceMonitor:
    """Test operation timing"""

    def test_records_success(self, monkeypatch):
        """Test a completed block is recorded"""
        monkeypatch.setattr(config, "METRICS_ENABLED", True)
        with performance_monitor("unit_op", pixel_count=10, swatch_count=2):
            pass

        recent = get_metrics_collector().get_recent_metrics(limit=1)[0]
        assert recent["operation_name"] == "unit_op"
        assert recent["pixel_count"] == 10
        assert recent["error"] is None

    def test_records_and_reraises_errors(self, monkeypatch):
        """Test failures are recorded and propagated"""
        monkeypatch.setattr(config, "METRICS_ENABLED", True)
        with pytest.raises(RuntimeError):
            with performance_monitor("failing_op"):
                raise RuntimeError("quantizer exploded")

        stats = get_metrics_collector().get_operation_stats("failing_op")
        assert stats["error_count"] == 1

    def test_disabled_records_nothing(self, monkeypatch):
        """Test nothing is recorded when metrics are disabled"""
        monkeypatch.setattr(config, "METRICS_ENABLED", False)
        with performance_monitor("quiet_op"):
            pass

        assert get_metrics_collector().get_operation_stats("quiet_op") == {}

    def test_decorator(self, monkeypatch):
        """Test the decorator times the wrapped call and keeps its result"""
        monkeypatch.setattr(config, "METRICS_ENABLED", True)

        @performance_tracked("decorated_op")
        def double(value):
            return value * 2

        assert double(4) == 8
        assert double.__name__ == "double"
        assert get_metrics_collector().get_operation_stats("decorated_op")["total_calls"] == 1

    @pytest.mark.parametrize("call", [
        lambda quantize: quantize([], 7),
        lambda quantize: quantize([], max_colors=7)
    ])
    def test_decorator_reads_swatch_count_argument(self, monkeypatch, call):
        """Test the swatch count is recorded whether passed positionally or by keyword"""
        monkeypatch.setattr(config, "METRICS_ENABLED", True)

        @performance_tracked("bound_op", swatch_count_arg="max_colors")
        def quantize(pixels, max_colors):
            return pixels

        call(quantize)

        assert get_metrics_collector().get_recent_metrics(limit=1)[0]["swatch_count"] == 7


class TestConfigAndLogging:
    """Test configuration validators and logger plumbing"""

    def test_validators(self):
        """Test configuration value validation"""
        assert Config.validate_algorithm("grid")
        assert not Config.validate_algorithm("kmeans")
        assert Config.validate_swatch_count(5)
        assert not Config.validate_swatch_count(0)
        assert Config.validate_lerp_factor(0.1)
        assert not Config.validate_lerp_factor(1.5)
        assert Config.validate_extraction_interval(1)
        assert not Config.validate_extraction_interval(0)

    def test_get_logger_caches_per_component(self):
        """Test one structured logger is kept per component"""
        first = get_logger("paletcam.test")
        assert isinstance(first, StructuredLogger)
        assert get_logger("paletcam.test") is first
        assert get_logger("paletcam.other") is not first

    def test_configure_logging(self):
        """Test logging can be reconfigured and used with extra fields"""
        configure_logging(level="DEBUG")
        get_logger("paletcam.test").info("configured", extra={"swatch_count": 5})

    def test_bound_logger_keeps_component(self):
        """Test child loggers keep the component and add context"""
        child = get_logger("paletcam.preview").bind(session_id="abc")

        assert isinstance(child, StructuredLogger)
        assert child.component == "paletcam.preview"
        child.debug("bound message", extra={"frame": 1})

    def test_get_logger_configures_on_first_use(self, monkeypatch):
        """Test loggers install the Paletcam sink without an explicit configure call"""
        monkeypatch.setattr(paletcam_logging, "_configured", False)

        get_logger("paletcam.lazy").info("first use")

        assert paletcam_logging._configured
