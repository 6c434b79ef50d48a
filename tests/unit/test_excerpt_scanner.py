"""
Unit tests for ExcerptScanner.

Covers record segmentation (open and close marker lines included), discarded
lines outside records, unterminated trailing records, queue feeding with
end-of-stream markers, and stream read errors.
"""

import queue
import re
import threading
import zipfile
import zlib

import pytest

from dmr_extractor.exceptions import InputStreamError
from dmr_extractor.models import MarkerConfig
from dmr_extractor.scanning.excerpt_scanner import END_OF_STREAM, ExcerptScanner
from tests.helpers import make_document, make_record


def _lines(text):
    return text.splitlines(keepends=True)


class TestScan:

    def test_one_excerpt_per_record(self):
        doc = make_document(make_record(ident=1), make_record(ident=2), make_record(ident=3))
        excerpts = list(ExcerptScanner().scan(_lines(doc)))
        assert len(excerpts) == 3

    def test_excerpt_starts_with_open_and_ends_with_close_marker(self):
        excerpts = list(ExcerptScanner().scan(_lines(make_document(make_record()))))
        excerpt = excerpts[0]
        assert excerpt[0] == "<ns:Statistik>"
        assert excerpt[-1] == "</ns:Statistik>"
        assert len(excerpt) == len(make_record())

    def test_lines_are_trimmed(self):
        excerpt = next(ExcerptScanner().scan(["\t  <ns:Statistik>  \n", "   <ns:X>1</ns:X>\r\n", "</ns:Statistik>\n"]))
        assert excerpt == ("<ns:Statistik>", "<ns:X>1</ns:X>", "</ns:Statistik>")

    def test_lines_outside_records_are_discarded(self):
        lines = ["<root>", "<junk/>", "<ns:Statistik>", "<a>1</a>", "</ns:Statistik>", "<junk/>", "</root>"]
        excerpts = list(ExcerptScanner().scan(lines))
        assert excerpts == [("<ns:Statistik>", "<a>1</a>", "</ns:Statistik>")]

    def test_unterminated_trailing_record_is_dropped(self):
        record = make_record(ident=2)
        lines = make_record(ident=1) + record[:-1]
        scanner = ExcerptScanner()
        excerpts = list(scanner.scan(lines))
        assert len(excerpts) == 1
        assert "<ns:KoeretoejIdent>1</ns:KoeretoejIdent>" in excerpts[0]

    def test_close_marker_while_idle_is_ignored(self):
        lines = ["</ns:Statistik>", "<ns:Statistik>", "</ns:Statistik>"]
        assert len(list(ExcerptScanner().scan(lines))) == 1

    def test_reopened_record_restarts_accumulator(self):
        lines = ["<ns:Statistik>", "<a>lost</a>", "<ns:Statistik>", "<a>kept</a>", "</ns:Statistik>"]
        assert list(ExcerptScanner().scan(lines)) == [("<ns:Statistik>", "<a>kept</a>", "</ns:Statistik>")]

    def test_excerpts_are_immutable_tuples(self):
        excerpt = next(ExcerptScanner().scan(make_record()))
        assert isinstance(excerpt, tuple)

    def test_empty_stream(self):
        assert list(ExcerptScanner().scan([])) == []

    def test_custom_markers(self):
        markers = MarkerConfig(record_open="<rec>", record_close="</rec>")
        lines = ["<rec>", "<x/>", "</rec>", "<ns:Statistik>", "</ns:Statistik>"]
        assert list(ExcerptScanner(markers).scan(lines)) == [("<rec>", "<x/>", "</rec>")]

    def test_scan_is_lazy(self):
        consumed = []

        def source():
            for line in make_record(ident=1) + make_record(ident=2):
                consumed.append(line)
                yield line

        scanner = ExcerptScanner()
        iterator = scanner.scan(source())
        next(iterator)
        assert len(consumed) == len(make_record())

    def test_stream_error_is_wrapped(self):
        def broken():
            yield "<ns:Statistik>"
            raise OSError("disk went away")

        with pytest.raises(InputStreamError, match="disk went away"):
            list(ExcerptScanner().scan(broken()))

    @pytest.mark.parametrize("error", [
        zlib.error("Error -3 while decompressing data: invalid distance too far back"),
        zipfile.BadZipFile("Bad CRC-32 for file 'export.xml'"),
        EOFError("Compressed file ended before the end-of-stream marker was reached"),
    ])
    def test_archive_decompression_error_is_wrapped(self, error):
        def corrupt():
            yield from make_record(ident=1)
            raise error

        with pytest.raises(InputStreamError, match=re.escape(str(error))):
            list(ExcerptScanner().scan(corrupt()))


class TestFeed:

    def test_feed_pushes_excerpts_then_one_end_marker_per_consumer(self):
        q = queue.Queue()
        pushed = ExcerptScanner().feed(make_record(ident=1) + make_record(ident=2), q, consumers=3)
        items = [q.get_nowait() for _ in range(q.qsize())]
        assert pushed == 2
        assert len(items) == 5
        assert all(isinstance(item, tuple) for item in items[:2])
        assert items[2:] == [END_OF_STREAM] * 3

    def test_feed_closes_queue_on_stream_error(self):
        def broken():
            yield from make_record(ident=1)
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

        q = queue.Queue()
        with pytest.raises(InputStreamError):
            ExcerptScanner().feed(broken(), q, consumers=2)
        items = [q.get_nowait() for _ in range(q.qsize())]
        assert items[-2:] == [END_OF_STREAM, END_OF_STREAM]

    def test_feed_blocks_on_full_queue_until_consumed(self):
        q = queue.Queue(maxsize=1)
        lines = []
        for i in range(5):
            lines += make_record(ident=i)
        received = []

        def consume():
            while True:
                item = q.get()
                if item is END_OF_STREAM:
                    return
                received.append(item)

        consumer = threading.Thread(target=consume)
        consumer.start()
        ExcerptScanner().feed(lines, q, consumers=1)
        consumer.join(timeout=5)
        assert len(received) == 5

    def test_feed_stops_when_stop_event_set(self):
        q = queue.Queue(maxsize=1)
        stop = threading.Event()
        stop.set()
        pushed = ExcerptScanner().feed(make_record(ident=1) + make_record(ident=2), q, consumers=2, stop_event=stop)
        assert pushed == 0
        assert q.empty()
