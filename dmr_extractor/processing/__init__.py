"""
Processing module for the extraction pipeline.

Provides the multiprocessing worker pool, its single-threaded counterpart and
the key collector they share.
"""

from .collector import KeyCollector, KeySet
from .parallel_coordinator import ParallelCoordinator
from .sequential_processor import SequentialProcessor

__all__ = [
    'KeyCollector',
    'KeySet',
    'ParallelCoordinator',
    'SequentialProcessor',
]
