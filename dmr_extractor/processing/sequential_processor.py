"""
Sequential Processor - Single-threaded extraction for testing and debugging.

Implements the same ExtractionProcessorInterface as ParallelCoordinator but scans,
parses and collects in the calling thread. Useful for:
- Unit testing (no multiprocessing complexity)
- Debugging (plain stack traces)
- Comparing sequential vs parallel results and performance
"""

import logging
import time

from typing import Iterable, Optional

from ..exceptions import ExcerptDecodeError
from ..interfaces import ExcerptParserInterface, ExtractionProcessorInterface
from ..models import ExtractionResult, MarkerConfig, MessageKind, WorkerMessage
from ..monitoring.performance_monitor import PerformanceMonitor
from ..scanning.excerpt_scanner import ExcerptScanner
from .collector import KeyCollector

_WORKER_ID = 0


class SequentialProcessor(ExtractionProcessorInterface):
    """
    Single-threaded extractor with the same failure policy as the worker pool.

    The one in-process "worker" reports to a KeyCollector through the same
    messages a worker process would post.
    """

    def __init__(self, parser: ExcerptParserInterface, markers: Optional[MarkerConfig] = None,
                 monitor: Optional[PerformanceMonitor] = None):
        self.logger = logging.getLogger(__name__)
        self.parser = parser
        self.markers = markers or parser.markers
        self.monitor = monitor
        self.logger.info(f"SequentialProcessor initialized ({parser.name} parser, single-threaded)")

    def run(self, lines: Iterable[str]) -> ExtractionResult:
        start_time = time.time()
        if self.monitor:
            self.monitor.start_monitoring()

        scanner = ExcerptScanner(self.markers)
        collector = KeyCollector(expected_workers=1)
        processed = emitted = failed = 0

        try:
            for excerpt in scanner.scan(lines):
                processed += 1
                try:
                    keys = self.parser.parse_all(excerpt)
                except ExcerptDecodeError as e:
                    failed += 1
                    kind = MessageKind.FAILED if self.parser.fatal_on_error else MessageKind.ERROR
                    collector.handle(WorkerMessage(kind, _WORKER_ID, error_message=str(e),
                                                   excerpt_text=e.excerpt_text))
                    continue
                for key in keys:
                    collector.handle(WorkerMessage(MessageKind.KEY, _WORKER_ID, key=key))
                    emitted += 1
        except BaseException:
            if self.monitor and self.monitor.is_monitoring:
                self.monitor.stop_monitoring()
            raise

        collector.handle(WorkerMessage(MessageKind.DONE, _WORKER_ID,
                                       processed=processed, emitted=emitted, failed=failed))

        result = ExtractionResult(
            keys=collector.key_set.freeze(),
            excerpts_scanned=scanner.excerpts_emitted,
            keys_parsed=collector.keys_parsed,
            duplicate_keys=collector.duplicate_keys,
            records_failed=collector.records_failed,
            worker_stats=dict(collector.worker_stats),
            processing_time_seconds=time.time() - start_time,
        )
        if self.monitor:
            result.performance_metrics = self.monitor.stop_monitoring(
                excerpts_scanned=result.excerpts_scanned,
                keys_parsed=result.keys_parsed,
                unique_keys=result.unique_keys,
                records_failed=result.records_failed,
            )

        self.logger.info(f"Sequential extraction completed: {result.unique_keys} unique keys from "
                         f"{result.excerpts_scanned} excerpts in {result.processing_time_seconds:.2f}s")
        return result
