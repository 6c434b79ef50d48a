"""
Monitoring module for extraction runs.

This module provides performance monitoring and metrics collection.
"""

from .performance_monitor import PerformanceMonitor, PerformanceMetrics

__all__ = [
    'PerformanceMonitor',
    'PerformanceMetrics'
]
