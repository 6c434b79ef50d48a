"""
Performance monitoring for extraction runs.

Samples memory and CPU of the coordinating process in a background thread and
turns the run counters into throughput figures.
"""

import logging
import threading
import time

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import psutil


@dataclass
class PerformanceMetrics:
    """Container for performance metrics."""
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    excerpts_scanned: int = 0
    keys_parsed: int = 0
    unique_keys: int = 0
    records_failed: int = 0
    peak_memory_mb: float = 0.0
    avg_cpu_percent: float = 0.0


class PerformanceMonitor:
    """
    Run-level performance monitor.

    Usage:
        monitor = PerformanceMonitor()
        monitor.start_monitoring()
        ...
        metrics = monitor.stop_monitoring(excerpts_scanned=..., keys_parsed=..., unique_keys=...)
    """

    def __init__(self, sample_interval: float = 0.5):
        """Initialize the performance monitor."""
        self.logger = logging.getLogger(__name__)
        self.sample_interval = sample_interval
        self._metrics = PerformanceMetrics()
        self._is_monitoring = False
        self._monitoring_thread = None
        self._stop_monitoring_flag = threading.Event()
        self._process = psutil.Process()
        self._cpu_samples: List[float] = []

    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    def start_monitoring(self) -> None:
        """Start performance monitoring with resource tracking."""
        if self._is_monitoring:
            self.logger.warning("Performance monitoring already started")
            return

        self._metrics = PerformanceMetrics(start_time=time.time())
        self._cpu_samples = []
        self._is_monitoring = True
        self._stop_monitoring_flag.clear()
        self._process.cpu_percent(interval=None)  # first call primes the counter

        self._monitoring_thread = threading.Thread(
            target=self._monitor_resources,
            name="dmr-monitor",
            daemon=True
        )
        self._monitoring_thread.start()
        self.logger.debug("Performance monitoring started")

    def stop_monitoring(self, excerpts_scanned: int = 0, keys_parsed: int = 0,
                        unique_keys: int = 0, records_failed: int = 0) -> Dict[str, Any]:
        """
        Stop monitoring and return the performance summary.

        Args:
            excerpts_scanned: Excerpts emitted by the scanner
            keys_parsed: Keys produced by the workers, duplicates included
            unique_keys: Size of the final key set
            records_failed: Excerpts skipped because they failed to decode
        """
        if not self._is_monitoring:
            self.logger.warning("Performance monitoring not started")
            return {}

        self._metrics.end_time = time.time()
        self._is_monitoring = False
        self._stop_monitoring_flag.set()
        if self._monitoring_thread and self._monitoring_thread.is_alive():
            self._monitoring_thread.join(timeout=1.0)

        self._metrics.excerpts_scanned = excerpts_scanned
        self._metrics.keys_parsed = keys_parsed
        self._metrics.unique_keys = unique_keys
        self._metrics.records_failed = records_failed
        self._sample_memory()
        if self._cpu_samples:
            self._metrics.avg_cpu_percent = sum(self._cpu_samples) / len(self._cpu_samples)

        summary = self._get_performance_summary()
        self.logger.info(f"Scanned {excerpts_scanned} records in {summary['total_processing_time_seconds']:.2f}s "
                         f"({summary['records_per_minute']:.0f} rec/min), peak memory "
                         f"{summary['peak_memory_mb']:.1f} MB")
        return summary

    def _monitor_resources(self) -> None:
        """Monitor system resources in background thread."""
        while not self._stop_monitoring_flag.is_set():
            try:
                self._sample_memory()
                self._cpu_samples.append(self._process.cpu_percent(interval=None))
            except psutil.Error as e:
                self.logger.warning(f"Error monitoring resources: {e}")
                break
            self._stop_monitoring_flag.wait(self.sample_interval)

    def _sample_memory(self) -> None:
        memory_mb = self._process.memory_info().rss / 1024 / 1024
        if memory_mb > self._metrics.peak_memory_mb:
            self._metrics.peak_memory_mb = memory_mb

    def _get_total_processing_time(self) -> float:
        if not self._metrics.start_time or not self._metrics.end_time:
            return 0.0
        return self._metrics.end_time - self._metrics.start_time

    def _get_performance_summary(self) -> Dict[str, Any]:
        total_time = self._get_total_processing_time()
        records_per_second = self._metrics.excerpts_scanned / total_time if total_time > 0 else 0.0
        return {
            'total_processing_time_seconds': total_time,
            'records_per_second': records_per_second,
            'records_per_minute': records_per_second * 60,
            'duplicate_ratio': (1 - self._metrics.unique_keys / self._metrics.keys_parsed)
                               if self._metrics.keys_parsed > 0 else 0.0,
            'peak_memory_mb': self._metrics.peak_memory_mb,
            'avg_cpu_percent': self._metrics.avg_cpu_percent,
        }
