"""
Parallel Processing Coordinator - Multiprocessing Worker Pool Manager

Runs the extraction pipeline across multiple CPU cores:

    input lines -> ExcerptScanner (thread) -> excerpt queue -> N worker processes
                -> result queue -> KeyCollector (coordinating thread) -> key set

KEY FEATURES:
- Multiprocessing: N independent worker processes, default cpu count - 1
- Backpressure: both queues are bounded to the worker count, so a slow pool
  throttles the scanner instead of buffering the whole file
- Single owner: only the collector touches the key set, no locks
- Failure policy belongs to the parser: a fatal decode failure aborts the run,
  terminates every worker and produces no result
"""

import logging
import multiprocessing as mp
import threading
import time

from typing import Dict, Iterable, List, Optional

from ..config.processing_defaults import ProcessingDefaults, default_worker_count
from ..exceptions import (ExcerptDecodeError, InputStreamError, PipelineAbortedError,
                          WorkerCrashedError)
from ..interfaces import ExcerptParserInterface, ExtractionProcessorInterface
from ..models import ExtractionResult, MarkerConfig, MessageKind, WorkerMessage
from ..monitoring.performance_monitor import PerformanceMonitor
from ..scanning.excerpt_scanner import END_OF_STREAM, ExcerptScanner
from .collector import KeyCollector


class ParallelCoordinator(ExtractionProcessorInterface):
    """
    Worker pool manager for parallel excerpt parsing.

    Worker Lifecycle:
    1. run() starts N worker processes, each with its own copy of the parser
    2. A scanner thread pushes excerpts onto the shared excerpt queue and closes
       it with one END_OF_STREAM marker per worker
    3. Each worker takes excerpts first come first served, posts KEY messages,
       and finally a DONE message carrying its identity and counters
    4. The collector runs on the calling thread until all N workers are DONE

    Args:
        parser: Parsing strategy shared (by copy) with every worker
        markers: Marker configuration for the scanner; defaults to the parser's
        num_workers: Number of worker processes (defaults to cpu count - 1, minimum 1)
        queue_depth_factor: Queue capacity per worker
        monitor: Optional PerformanceMonitor for throughput and memory metrics
    """

    def __init__(self, parser: ExcerptParserInterface, markers: Optional[MarkerConfig] = None,
                 num_workers: Optional[int] = None,
                 queue_depth_factor: int = ProcessingDefaults.QUEUE_DEPTH_FACTOR,
                 poll_seconds: float = ProcessingDefaults.RESULT_POLL_SECONDS,
                 join_timeout: float = ProcessingDefaults.WORKER_JOIN_TIMEOUT,
                 monitor: Optional[PerformanceMonitor] = None):
        self.logger = logging.getLogger(__name__)
        if num_workers is not None and num_workers <= 0:
            raise ValueError("num_workers must be positive")
        if queue_depth_factor <= 0:
            raise ValueError("queue_depth_factor must be positive")
        self.parser = parser
        self.markers = markers or parser.markers
        self.num_workers = num_workers or default_worker_count()
        self.queue_depth = self.num_workers * queue_depth_factor
        self.poll_seconds = poll_seconds
        self.join_timeout = join_timeout
        self.monitor = monitor

        self.logger.info(f"ParallelCoordinator initialized with {self.num_workers} {parser.name} workers")

    def run(self, lines: Iterable[str]) -> ExtractionResult:
        """
        Scan, parse and deduplicate every record in the line stream.

        Raises:
            PipelineAbortedError: If a fatal parser reports a decode failure
            WorkerCrashedError: If a worker process dies without reporting completion
            InputStreamError: If the input stream cannot be read
        """
        start_time = time.time()
        excerpt_queue = mp.Queue(maxsize=self.queue_depth)
        result_queue = mp.Queue(maxsize=self.queue_depth)
        stop_event = threading.Event()
        scanner = ExcerptScanner(self.markers)
        scan_outcome: Dict[str, object] = {}

        workers: List[mp.Process] = [
            mp.Process(
                target=_run_worker,
                args=(worker_id, self.parser, excerpt_queue, result_queue),
                name=f"dmr-{self.parser.name}-worker-{worker_id}",
                daemon=True,
            )
            for worker_id in range(self.num_workers)
        ]
        self.logger.info(f"Starting {self.num_workers} workers...")
        for worker in workers:
            worker.start()

        # Sampling thread starts only after the workers are forked
        if self.monitor:
            self.monitor.start_monitoring()

        scanner_thread = threading.Thread(
            target=_scan_into_queue,
            args=(scanner, lines, excerpt_queue, self.num_workers, stop_event, scan_outcome),
            name="dmr-scanner",
            daemon=True,
        )
        scanner_thread.start()

        collector = KeyCollector(self.num_workers)
        try:
            collector.collect(
                result_queue,
                worker_exit_codes=lambda: {i: w.exitcode for i, w in enumerate(workers)},
                poll_seconds=self.poll_seconds,
            )
        except (PipelineAbortedError, WorkerCrashedError) as e:
            self.logger.error(f"Aborting pipeline: {e}")
            self._abort(workers, scanner_thread, stop_event, excerpt_queue, result_queue)
            raise
        except BaseException:
            self._abort(workers, scanner_thread, stop_event, excerpt_queue, result_queue)
            raise

        # Every worker consumed its END_OF_STREAM, so the scanner is done.
        scanner_thread.join()
        self._join_workers(workers)
        excerpt_queue.close()
        result_queue.close()

        if 'error' in scan_outcome:
            if self.monitor:
                self.monitor.stop_monitoring()
            raise scan_outcome['error']

        excerpts_scanned = scan_outcome.get('pushed', 0)
        result = ExtractionResult(
            keys=collector.key_set.freeze(),
            excerpts_scanned=excerpts_scanned,
            keys_parsed=collector.keys_parsed,
            duplicate_keys=collector.duplicate_keys,
            records_failed=collector.records_failed,
            worker_stats=dict(collector.worker_stats),
            processing_time_seconds=time.time() - start_time,
        )
        if self.monitor:
            result.performance_metrics = self.monitor.stop_monitoring(
                excerpts_scanned=excerpts_scanned,
                keys_parsed=collector.keys_parsed,
                unique_keys=result.unique_keys,
                records_failed=collector.records_failed,
            )

        for stats in sorted(result.worker_stats.values(), key=lambda s: s.worker_id):
            self.logger.info(f"{self.parser.name}-worker {stats.worker_id} finished after processing "
                             f"{stats.processed} excerpts ({stats.emitted} keys, {stats.failed} failed)")
        self.logger.info(f"Parallel extraction completed: {result.unique_keys} unique keys from "
                         f"{excerpts_scanned} excerpts in {result.processing_time_seconds:.2f}s")
        return result

    def _join_workers(self, workers: List[mp.Process]) -> None:
        for worker in workers:
            worker.join(timeout=self.join_timeout)
            if worker.is_alive():
                self.logger.warning(f"{worker.name} did not exit after completion, terminating")
                worker.terminate()
                worker.join()

    def _abort(self, workers: List[mp.Process], scanner_thread: threading.Thread,
               stop_event: threading.Event, excerpt_queue, result_queue) -> None:
        stop_event.set()
        for worker in workers:
            if worker.is_alive():
                worker.terminate()
        for worker in workers:
            worker.join()
        scanner_thread.join(timeout=self.join_timeout)
        # Queued items will never be read; don't block interpreter exit flushing them
        for q in (excerpt_queue, result_queue):
            q.cancel_join_thread()
            q.close()
        if self.monitor and self.monitor.is_monitoring:
            self.monitor.stop_monitoring()


def _scan_into_queue(scanner: ExcerptScanner, lines: Iterable[str], excerpt_queue, consumers: int,
                     stop_event: threading.Event, outcome: Dict[str, object]) -> None:
    """Scanner thread body; hands its count or its stream error back to run()."""
    try:
        outcome['pushed'] = scanner.feed(lines, excerpt_queue, consumers, stop_event)
    except InputStreamError as e:
        logging.getLogger(__name__).error(f"Input stream failed: {e}")
        outcome['error'] = e
    except Exception as e:
        logging.getLogger(__name__).error(f"Scanner failed: {e}")
        outcome['error'] = InputStreamError(f"Scanner failed: {e}")


def _run_worker(worker_id: int, parser: ExcerptParserInterface, excerpt_queue, result_queue) -> None:
    """
    Worker process body.

    Loops until END_OF_STREAM, posting one KEY message per key found. A decode
    failure is posted as FAILED (and the worker stops) when the parser is fatal on
    error, or as ERROR (and the worker continues) otherwise.

    PERFORMANCE TUNING: only ERROR+ level logging is active in workers.
    """
    logging.basicConfig(level=logging.ERROR)
    logger = logging.getLogger(__name__)

    processed = emitted = failed = 0
    while True:
        excerpt = excerpt_queue.get()
        if excerpt is END_OF_STREAM:
            break
        processed += 1
        try:
            keys = parser.parse_all(excerpt)
        except ExcerptDecodeError as e:
            failed += 1
            if parser.fatal_on_error:
                logger.error(f"{parser.name}-worker {worker_id}: fatal parse failure: {e}")
                result_queue.put(WorkerMessage(MessageKind.FAILED, worker_id,
                                               error_message=str(e), excerpt_text=e.excerpt_text))
                return
            result_queue.put(WorkerMessage(MessageKind.ERROR, worker_id,
                                           error_message=str(e), excerpt_text=e.excerpt_text))
            continue
        for key in keys:
            result_queue.put(WorkerMessage(MessageKind.KEY, worker_id, key=key))
            emitted += 1

    result_queue.put(WorkerMessage(MessageKind.DONE, worker_id,
                                   processed=processed, emitted=emitted, failed=failed))
    logger.debug(f"{parser.name}-worker {worker_id} finished after processing {processed} excerpts")
