"""
Streaming record scanner for DMR statistics exports.

The export is a single huge XML document with one element per line. Instead of
parsing the whole document, the scanner reads it line by line and cuts out each
<ns:Statistik> record as an excerpt that a worker can parse on its own.
"""

import logging
import queue
import threading
import zipfile
import zlib

from typing import Iterable, Iterator, List, Optional

from ..exceptions import InputStreamError
from ..models import Excerpt, MarkerConfig

# Pushed once per worker after the last excerpt
END_OF_STREAM = None

_PUT_TIMEOUT_SECONDS = 0.1


class ExcerptScanner:
    """
    Two-state (IDLE / CAPTURING) line scanner producing record excerpts.

    - IDLE -> CAPTURING on a record-open line. The open line is kept, so every
      excerpt is a well-formed element on its own.
    - CAPTURING -> IDLE on a record-close line, which is appended before the
      excerpt is emitted.
    - Lines seen while IDLE are discarded.
    - A record still open when the stream ends is dropped.
    """

    def __init__(self, markers: Optional[MarkerConfig] = None):
        self.markers = markers or MarkerConfig()
        self.logger = logging.getLogger(__name__)
        self.excerpts_emitted = 0
        self.lines_read = 0

    def scan(self, lines: Iterable[str]) -> Iterator[Excerpt]:
        """
        Lazily yield one excerpt per complete record.

        Args:
            lines: Input lines; consumed once, top to bottom

        Raises:
            InputStreamError: If reading the stream fails
        """
        open_marker = self.markers.record_open
        close_marker = self.markers.record_close
        capturing = False
        excerpt: List[str] = []

        try:
            for raw_line in lines:
                self.lines_read += 1
                line = raw_line.strip()
                if line.startswith(open_marker):
                    if capturing:
                        self.logger.debug(f"Record reopened at line {self.lines_read}, dropping {len(excerpt)} lines")
                    capturing = True
                    excerpt = [line]
                elif capturing and line.startswith(close_marker):
                    excerpt.append(line)
                    capturing = False
                    self.excerpts_emitted += 1
                    yield tuple(excerpt)
                    excerpt = []
                elif capturing:
                    excerpt.append(line)
        except (OSError, UnicodeDecodeError, EOFError, zlib.error, zipfile.BadZipFile) as e:
            raise InputStreamError(f"Unable to read input stream at line {self.lines_read + 1}: {e}")

        if capturing:
            self.logger.debug(f"Stream ended inside an open record, dropping {len(excerpt)} lines")

    def feed(self, lines: Iterable[str], excerpt_queue, consumers: int,
             stop_event: Optional[threading.Event] = None) -> int:
        """
        Push every excerpt onto a bounded queue, then close it.

        The queue is closed by pushing one END_OF_STREAM marker per consumer, also
        when reading fails, so workers never wait on a dead producer. Blocks while
        the queue is full.

        Args:
            lines: Input lines
            excerpt_queue: Bounded queue shared with the workers
            consumers: Number of workers reading the queue
            stop_event: Set by the coordinator to abandon the run

        Returns:
            Number of excerpts pushed

        Raises:
            InputStreamError: If reading the stream fails
        """
        stop_event = stop_event or threading.Event()
        pushed = 0
        try:
            for excerpt in self.scan(lines):
                if not _put(excerpt_queue, excerpt, stop_event):
                    self.logger.debug(f"Scanner stopped after {pushed} excerpts")
                    return pushed
                pushed += 1
        finally:
            for _ in range(consumers):
                if not _put(excerpt_queue, END_OF_STREAM, stop_event):
                    break
        self.logger.info(f"Scanner finished: {pushed} excerpts from {self.lines_read} lines")
        return pushed


def _put(target_queue, item, stop_event: threading.Event) -> bool:
    """Blocking put that gives up once stop_event is set."""
    while not stop_event.is_set():
        try:
            target_queue.put(item, timeout=_PUT_TIMEOUT_SECONDS)
            return True
        except queue.Full:
            continue
    return False
