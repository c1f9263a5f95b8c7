"""
langproc Sinks Test Suite

1. Collector and counter under concurrent calls
2. File sink lifecycle
3. Console sink with and without a progress line
4. Tee fan-out
"""

import io
import os
import sys
import threading

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from langproc.sinks import ConsoleSink, FileSink, Tee, WordCollector, WordCounter


# --- Test 1: Collector and counter ---

def test_collector_keeps_duplicates_in_order():
    collector = WordCollector()
    for word in ["ab", "aabb", "ab"]:
        collector(word)
    assert collector.words == ["ab", "aabb", "ab"]
    assert collector.distinct == {"ab", "aabb"}
    assert len(collector) == 3


def test_counter_under_contention():
    counter = WordCounter()

    def worker():
        for _ in range(500):
            counter("w")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert counter.count == 4000


# --- Test 2: File sink ---

def test_file_sink_writes_lines(tmp_path):
    path = tmp_path / "words.txt"
    with FileSink(path) as sink:
        sink("ab")
        sink("aabb")
    assert path.read_text(encoding="utf-8") == "ab\naabb\n"


def test_file_sink_append_mode(tmp_path):
    path = tmp_path / "words.txt"
    path.write_text("old\n", encoding="utf-8")
    with FileSink(path, append=True) as sink:
        sink("new")
    assert path.read_text(encoding="utf-8") == "old\nnew\n"


def test_file_sink_rejects_writes_when_closed(tmp_path):
    sink = FileSink(tmp_path / "words.txt")
    with pytest.raises(ValueError):
        sink("ab")
    sink.open()
    sink("ab")
    sink.close()
    with pytest.raises(ValueError):
        sink("ab")


@pytest.mark.skipif(not os.path.exists("/dev/full"), reason="needs /dev/full")
def test_file_sink_closes_after_failed_write():
    sink = FileSink("/dev/full")
    with pytest.raises(OSError):
        with sink:
            sink("ab")
    # Closed despite the failed flush, and the write error was not masked
    with pytest.raises(ValueError):
        sink("ab")


# --- Test 3: Console sink ---

def test_console_sink_plain():
    stream = io.StringIO()
    sink = ConsoleSink(stream=stream)
    sink("ab")
    sink("aabb")
    assert stream.getvalue() == "ab\naabb\n"


def test_console_sink_redraws_status_line():
    stream = io.StringIO()
    sink = ConsoleSink(stream=stream, status=lambda: "working")
    sink("ab")
    assert stream.getvalue() == "ab     \nworking\r"


def test_console_sink_with_empty_status():
    stream = io.StringIO()
    sink = ConsoleSink(stream=stream, status=lambda: "")
    sink("ab")
    assert stream.getvalue() == "ab\n"


def test_console_sink_pads_by_plain_status_width():
    stream = io.StringIO()
    sink = ConsoleSink(stream=stream, status=lambda: "working", style=lambda s: f"<{s}>")
    sink("ab")
    assert stream.getvalue() == "ab     \n<working>\r"


# --- Test 4: Tee ---

def test_tee_forwards_to_every_sink():
    first, second = WordCollector(), WordCounter()
    tee = Tee(first, second)
    tee("ab")
    tee("ba")
    assert first.words == ["ab", "ba"]
    assert second.count == 2
