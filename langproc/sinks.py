"""
Word sinks: callbacks that consume emitted words.

Every sink is callable with one word and locks internally, so the same
instance can be handed to a ConcurrentExplorer whose units call it from
several threads at once.

    with FileSink("words.txt") as out:
        run(grammar, Tee(ConsoleSink(), out))
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import Callable, Optional, TextIO, Union

_logger = logging.getLogger(__name__)


class WordCounter:
    """Counts emitted words."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0

    def __call__(self, word: str) -> None:
        with self._lock:
            self._count += 1

    @property
    def count(self) -> int:
        with self._lock:
            return self._count


class WordCollector:
    """Keeps every emitted word in arrival order, duplicates included."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._words: list[str] = []

    def __call__(self, word: str) -> None:
        with self._lock:
            self._words.append(word)

    @property
    def words(self) -> list[str]:
        with self._lock:
            return list(self._words)

    @property
    def distinct(self) -> set[str]:
        with self._lock:
            return set(self._words)

    def __len__(self) -> int:
        with self._lock:
            return len(self._words)


class ConsoleSink:
    """Prints one word per line.

    `status` returns the progress line currently shown on the terminal (or
    ""). When set, the word overwrites that line and the status is redrawn
    underneath it, so words and the progress line never interleave.
    `style` decorates the redrawn status (e.g. with ANSI codes); padding is
    computed from the undecorated text.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        status: Optional[Callable[[], str]] = None,
        lock: Optional[threading.Lock] = None,
        style: Optional[Callable[[str], str]] = None,
    ) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._status = status
        self._style = style
        self._lock = lock if lock is not None else threading.Lock()

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def __call__(self, word: str) -> None:
        with self._lock:
            if self._status is None:
                self._stream.write(word + "\n")
            else:
                line = self._status()
                self._stream.write(word + " " * max(len(line) - len(word), 0) + "\n")
                if line:
                    shown = self._style(line) if self._style is not None else line
                    self._stream.write(shown + "\r")
            self._stream.flush()


class FileSink:
    """Appends one word per line to a text file, flushing every line."""

    def __init__(self, path: Union[str, Path], append: bool = False) -> None:
        self._path = Path(path)
        self._mode = "a" if append else "w"
        self._lock = threading.Lock()
        self._handle: Optional[TextIO] = None

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> FileSink:
        if self._handle is None:
            self._handle = self._path.open(self._mode, encoding="utf-8", buffering=1)
        return self

    def close(self) -> None:
        """Close the file. A failed final flush raises, but the sink is closed either way."""
        with self._lock:
            handle, self._handle = self._handle, None
            if handle is not None:
                handle.close()

    def __call__(self, word: str) -> None:
        with self._lock:
            if self._handle is None:
                raise ValueError(f"FileSink for {self._path} is not open")
            self._handle.write(word + "\n")

    def __enter__(self) -> FileSink:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return
        # Keep the original error; the flush usually fails the same way
        try:
            self.close()
        except OSError as e:
            _logger.warning("Closing %s failed: %s", self._path, e)


class Tee:
    """Forwards each word to several sinks, in order."""

    def __init__(self, *sinks: Callable[[str], None]) -> None:
        self._sinks = sinks

    def __call__(self, word: str) -> None:
        for sink in self._sinks:
            sink(word)
