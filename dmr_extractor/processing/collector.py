"""
Key collection and completion bookkeeping.

The collector is the single owner of the deduplicated key set. Workers never
touch it; they post messages to the result queue and the collector applies them
one at a time, so no locking is needed.
"""

import logging
import queue

from typing import Callable, Dict, Iterator, Optional, Set

from ..exceptions import PipelineAbortedError, WorkerCrashedError
from ..models import MessageKind, WorkerMessage, WorkerStats


class KeySet:
    """Set of unique ParsedKeys; inserting an existing key is a no-op."""

    def __init__(self):
        self._keys: Set[str] = set()

    def add(self, key: str) -> bool:
        """Insert a key. Returns True if it was not present before."""
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def __contains__(self, key) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def freeze(self) -> frozenset:
        return frozenset(self._keys)


class KeyCollector:
    """
    Consumes worker messages until every worker has reported completion.

    Keys and completion messages from different workers interleave in any order,
    so the collector keeps draining keys until the pending-worker count is zero.

    Args:
        expected_workers: Number of workers that must report completion
    """

    def __init__(self, expected_workers: int):
        if expected_workers <= 0:
            raise ValueError("expected_workers must be positive")
        self.logger = logging.getLogger(__name__)
        self.expected_workers = expected_workers
        self.pending = expected_workers
        self.key_set = KeySet()
        self.keys_parsed = 0
        self.duplicate_keys = 0
        self.records_failed = 0
        self.worker_stats: Dict[int, WorkerStats] = {}

    @property
    def finished(self) -> bool:
        return self.pending == 0

    def handle(self, message: WorkerMessage) -> None:
        """
        Apply one worker message.

        Raises:
            PipelineAbortedError: On a fatal parse failure reported by a worker
        """
        if message.kind is MessageKind.KEY:
            self.keys_parsed += 1
            if not self.key_set.add(message.key):
                self.duplicate_keys += 1
        elif message.kind is MessageKind.DONE:
            if message.worker_id in self.worker_stats:
                self.logger.warning(f"Worker {message.worker_id} reported completion twice, ignoring")
                return
            self.worker_stats[message.worker_id] = WorkerStats(
                worker_id=message.worker_id,
                processed=message.processed,
                emitted=message.emitted,
                failed=message.failed,
            )
            self.pending -= 1
            self.logger.debug(f"Worker {message.worker_id} done, {self.pending} pending")
        elif message.kind is MessageKind.ERROR:
            self.records_failed += 1
            self.logger.warning(f"Worker {message.worker_id} skipped a malformed record: {message.error_message}")
        elif message.kind is MessageKind.FAILED:
            raise PipelineAbortedError(
                f"Parse failure in worker {message.worker_id}: {message.error_message}",
                worker_id=message.worker_id,
                excerpt_text=message.excerpt_text,
            )
        else:
            raise ValueError(f"Unknown message kind: {message.kind!r}")

    def collect(self, result_queue, worker_exit_codes: Optional[Callable[[], Dict[int, Optional[int]]]] = None,
                poll_seconds: float = 0.5) -> KeySet:
        """
        Run the control loop until every worker has reported completion.

        Args:
            result_queue: Queue the workers post WorkerMessage objects to
            worker_exit_codes: Optional callable returning {worker_id: exitcode or None};
                used to detect workers that died without reporting completion
            poll_seconds: How long to wait for a message before checking the workers

        Returns:
            The final key set

        Raises:
            PipelineAbortedError: On a fatal parse failure
            WorkerCrashedError: If a worker exits without reporting completion
        """
        suspects: Set[int] = set()
        while not self.finished:
            try:
                message = result_queue.get(timeout=poll_seconds)
            except queue.Empty:
                if worker_exit_codes is not None:
                    suspects = self._check_workers(worker_exit_codes(), suspects)
                continue
            self.handle(message)

        self.logger.info(f"Collector finished: {len(self.key_set)} unique keys from {self.keys_parsed} parsed "
                         f"({self.duplicate_keys} duplicates, {self.records_failed} failed records)")
        return self.key_set

    def _check_workers(self, exit_codes: Dict[int, Optional[int]], suspects: Set[int]) -> Set[int]:
        # A worker that exited without a completion message gets one more poll
        # round for its last messages to arrive before it is declared crashed.
        exited = {worker_id for worker_id, code in exit_codes.items()
                  if code is not None and worker_id not in self.worker_stats}
        crashed = exited & suspects
        if crashed:
            worker_id = min(crashed)
            raise WorkerCrashedError(
                f"Worker {worker_id} exited with code {exit_codes[worker_id]} without reporting completion",
                worker_id=worker_id,
                exit_code=exit_codes[worker_id],
            )
        return exited
