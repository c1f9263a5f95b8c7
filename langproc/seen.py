"""
SeenSet: run-scoped record of intermediate strings already scheduled.

Shared by every unit of a concurrent run, so all access is lock-guarded.
`add_if_absent()` is the atomic check-and-insert that reports whether the
caller got there first. `__contains__` and `add()` are kept separate for the
relaxed two-step mode, where two units can both see a string as absent and
both expand it.
"""

from __future__ import annotations

import threading
from typing import Iterable, Iterator


class SeenSet:
    """Thread-safe set of derivation strings."""

    def __init__(self, initial: Iterable[str] = ()) -> None:
        self._items: set[str] = set(initial)
        self._lock = threading.Lock()

    def add_if_absent(self, text: str) -> bool:
        """Insert `text`; True if it was not present before."""
        with self._lock:
            if text in self._items:
                return False
            self._items.add(text)
            return True

    def add(self, text: str) -> None:
        with self._lock:
            self._items.add(text)

    def __contains__(self, text: object) -> bool:
        with self._lock:
            return text in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            snapshot = list(self._items)
        return iter(snapshot)

    def __repr__(self) -> str:
        return f"<SeenSet: {len(self)} strings>"
