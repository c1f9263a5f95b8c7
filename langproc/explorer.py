"""
Explorers: enumerate every word a grammar derives from a start string.

Two strategies share the same classification policy and therefore the same
output set (order and multiplicity may differ):

- SequentialExplorer: staged breadth-first traversal on the calling thread.
  Emission order is deterministic: generation, then input, then rule.
- ConcurrentExplorer: one unit of work per live derivation string, executed
  on a bounded thread pool. The call blocks until the run-scoped in-flight
  counter drains to zero.

Every CONTINUE string is expanded at most once per run (SeenSet). Words are
never deduplicated: two derivations of the same word fire the callback twice.

Usage:
    words = []
    result = run(grammar, words.append, start="S", strategy=Strategy.SEQUENTIAL)
    print(result.summary())
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional

from langproc.classifier import DEFAULT_MARGIN, Verdict, classify
from langproc.grammar import DEFAULT_START, Grammar
from langproc.seen import SeenSet
from langproc.sinks import WordCollector
from langproc.trace import DerivationGraph

_logger = logging.getLogger(__name__)

WordCallback = Callable[[str], None]


class Strategy(Enum):
    """How a run schedules its expansions."""
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


# ============================================================================
# Errors
# ============================================================================

class ExplorationError(Exception):
    """A unit of work failed during a concurrent run."""
    def __init__(self, message: str, text: Optional[str] = None):
        at = f" while expanding {text!r}" if text is not None else ""
        super().__init__(f"Exploration failed{at}: {message}")
        self.text = text


class WorkItemError(ExplorationError):
    """A work item was built with a missing or wrong-typed field."""


# ============================================================================
# Run bookkeeping
# ============================================================================

@dataclass
class ExplorationResult:
    """Statistics of one finished run."""
    strategy: Strategy
    start: str
    words_found: int
    expanded: int
    discarded: int
    noops: int
    elapsed: float
    generations: int = 0

    def summary(self) -> str:
        lines = [
            f"Exploration [{self.strategy.value}] from {self.start!r}",
            f"  Words found: {self.words_found}",
            f"  Strings expanded: {self.expanded}",
            f"  Discarded: {self.discarded}",
            f"  No-op applications: {self.noops}",
            f"  Elapsed: {self.elapsed:.3f}s",
        ]
        if self.strategy == Strategy.SEQUENTIAL:
            lines.append(f"  Generations: {self.generations}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"<ExplorationResult {self.strategy.value}: "
            f"{self.words_found} words, {self.expanded} expanded>"
        )


class _Tally:
    """Lock-guarded counters shared by every unit of a run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.expanded = 0
        self.counts = {verdict: 0 for verdict in Verdict}

    def expanding(self) -> None:
        with self._lock:
            self.expanded += 1

    def count(self, verdict: Verdict) -> None:
        with self._lock:
            self.counts[verdict] += 1


class InFlightCounter:
    """Counts scheduled-but-unfinished units; joinable without polling."""

    def __init__(self) -> None:
        self._value = 0
        self._cond = threading.Condition()

    @property
    def value(self) -> int:
        with self._cond:
            return self._value

    def reset(self, value: int = 0) -> None:
        with self._cond:
            self._value = value
            self._cond.notify_all()

    def increment(self) -> None:
        with self._cond:
            self._value += 1

    def decrement(self) -> None:
        with self._cond:
            self._value -= 1
            if self._value <= 0:
                self._cond.notify_all()

    def wait_for_zero(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._value <= 0, timeout)


@dataclass(frozen=True)
class WorkItem:
    """One schedulable expansion: the string, where words go, and the run's SeenSet."""
    text: str
    on_word: WordCallback
    seen: SeenSet

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise WorkItemError(f"text must be a string, got {type(self.text).__name__}")
        if not callable(self.on_word):
            raise WorkItemError("on_word must be callable", self.text)
        if not isinstance(self.seen, SeenSet):
            raise WorkItemError(
                f"seen must be a SeenSet, got {type(self.seen).__name__}", self.text
            )


# ============================================================================
# Explorers
# ============================================================================

class Explorer:
    """Shared rule application and classification for both strategies.

    An explorer instance runs one exploration at a time; `in_flight` reports
    the progress of the current run.
    """

    strategy: Strategy

    def __init__(
        self,
        grammar: Grammar,
        margin: int = DEFAULT_MARGIN,
        recorder: Optional[DerivationGraph] = None,
    ) -> None:
        self._grammar = grammar
        self._margin = margin
        self._recorder = recorder
        self._in_flight = InFlightCounter()

    @property
    def grammar(self) -> Grammar:
        return self._grammar

    @property
    def margin(self) -> int:
        return self._margin

    @property
    def in_flight(self) -> int:
        """Strings scheduled for expansion but not yet expanded."""
        return self._in_flight.value

    def run(self, on_word: WordCallback, start: str = DEFAULT_START) -> ExplorationResult:
        raise NotImplementedError

    def _begin(self, start: str) -> _Tally:
        _logger.info(
            "Exploring %r with %d rules (n=%d, margin=%d, strategy=%s)",
            start, len(self._grammar.rules), self._grammar.max_length,
            self._margin, self.strategy.value,
        )
        if self._recorder is not None:
            self._recorder.start(start)
        return _Tally()

    def _finish(
        self,
        start: str,
        tally: _Tally,
        began: float,
        generations: int = 0,
    ) -> ExplorationResult:
        result = ExplorationResult(
            strategy=self.strategy,
            start=start,
            words_found=tally.counts[Verdict.WORD],
            expanded=tally.expanded,
            discarded=tally.counts[Verdict.DISCARD],
            noops=tally.counts[Verdict.NOOP],
            elapsed=time.perf_counter() - began,
            generations=generations,
        )
        _logger.info("Exploration done: %r", result)
        return result

    def _expand(self, text: str, tally: _Tally) -> Iterator[tuple[str, Verdict]]:
        """Apply every rule to `text` in declaration order and classify each result."""
        tally.expanding()
        for rule in self._grammar.rules:
            output = rule.apply(text)
            verdict = classify(self._grammar, text, output, self._margin)
            tally.count(verdict)
            if self._recorder is not None:
                self._recorder.record(text, rule, output, verdict)
            if verdict == Verdict.WORD:
                _logger.debug("Word: %s", output)
            elif verdict == Verdict.CONTINUE:
                _logger.debug("Stage: %s", output)
            yield output, verdict

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._grammar!r} in_flight={self.in_flight}>"


class SequentialExplorer(Explorer):
    """Generation-by-generation traversal on the calling thread.

    Each generation expands every string of the previous one; words are
    emitted as soon as they are produced, CONTINUE strings that were never
    seen before form the next generation. The run ends with the first empty
    generation.
    """

    strategy = Strategy.SEQUENTIAL

    def run(self, on_word: WordCallback, start: str = DEFAULT_START) -> ExplorationResult:
        tally = self._begin(start)
        began = time.perf_counter()

        history = SeenSet([start])
        frontier = [start]
        generations = 0
        self._in_flight.reset(1)

        while frontier:
            stage = frontier
            frontier = []
            _logger.debug("Generation %d: %d strings", generations, len(stage))

            for text in stage:
                for output, verdict in self._expand(text, tally):
                    if verdict == Verdict.WORD:
                        on_word(output)
                    elif verdict == Verdict.CONTINUE and history.add_if_absent(output):
                        frontier.append(output)
                        self._in_flight.increment()
                self._in_flight.decrement()
            generations += 1

        return self._finish(start, tally, began, generations)


class ConcurrentExplorer(Explorer):
    """Fan-out traversal: every live string is its own unit of work.

    Units run on a ThreadPoolExecutor with at most `max_workers` threads and
    never wait for the children they schedule. `run` joins on the in-flight
    counter. The word callback is invoked from worker threads and must be
    thread-safe.

    With `atomic_dedup=False` the SeenSet check and insert are two separate
    steps, so two units may both claim the same string and expand it twice.
    That reproduces the older relaxed behaviour; words stay correct but may
    be emitted more often.
    """

    strategy = Strategy.CONCURRENT

    def __init__(
        self,
        grammar: Grammar,
        margin: int = DEFAULT_MARGIN,
        recorder: Optional[DerivationGraph] = None,
        max_workers: Optional[int] = None,
        atomic_dedup: bool = True,
    ) -> None:
        super().__init__(grammar, margin=margin, recorder=recorder)
        if max_workers is not None and max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self._max_workers = max_workers
        self._atomic_dedup = atomic_dedup
        self._failure: Optional[ExplorationError] = None
        self._failure_lock = threading.Lock()

    @property
    def max_workers(self) -> Optional[int]:
        return self._max_workers

    def run(self, on_word: WordCallback, start: str = DEFAULT_START) -> ExplorationResult:
        root = WorkItem(start, on_word, SeenSet([start]))
        tally = self._begin(start)
        began = time.perf_counter()
        self._failure = None
        self._in_flight.reset()

        with ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="langproc-unit",
        ) as pool:
            self._schedule(root, pool, tally)
            self._in_flight.wait_for_zero()

        if self._failure is not None:
            raise self._failure
        return self._finish(start, tally, began)

    def _schedule(self, item: WorkItem, pool: ThreadPoolExecutor, tally: _Tally) -> None:
        self._in_flight.increment()
        try:
            pool.submit(self._unit, item, pool, tally)
        except RuntimeError:
            self._in_flight.decrement()
            raise

    def _unit(self, item: WorkItem, pool: ThreadPoolExecutor, tally: _Tally) -> None:
        try:
            if self._failure is not None:
                return
            for output, verdict in self._expand(item.text, tally):
                if verdict == Verdict.WORD:
                    item.on_word(output)
                elif verdict == Verdict.CONTINUE and self._claim(item.seen, output):
                    if self._failure is None:
                        self._schedule(WorkItem(output, item.on_word, item.seen), pool, tally)
        except Exception as exc:
            self._fail(item, exc)
        finally:
            self._in_flight.decrement()

    def _claim(self, seen: SeenSet, text: str) -> bool:
        if self._atomic_dedup:
            return seen.add_if_absent(text)
        if text in seen:
            return False
        seen.add(text)
        return True

    def _fail(self, item: WorkItem, exc: Exception) -> None:
        with self._failure_lock:
            if self._failure is None:
                _logger.error("Unit failed on %r: %s", item.text, exc)
                if isinstance(exc, ExplorationError):
                    self._failure = exc
                else:
                    wrapped = ExplorationError(str(exc), item.text)
                    wrapped.__cause__ = exc
                    self._failure = wrapped
            else:
                _logger.debug("Further failure on %r suppressed: %s", item.text, exc)


# ============================================================================
# Public API
# ============================================================================

def make_explorer(
    grammar: Grammar,
    strategy: Strategy = Strategy.CONCURRENT,
    margin: int = DEFAULT_MARGIN,
    recorder: Optional[DerivationGraph] = None,
    max_workers: Optional[int] = None,
    atomic_dedup: bool = True,
) -> Explorer:
    """Build the explorer for `strategy`. Pool options only apply to CONCURRENT."""
    if strategy == Strategy.SEQUENTIAL:
        return SequentialExplorer(grammar, margin=margin, recorder=recorder)
    return ConcurrentExplorer(
        grammar,
        margin=margin,
        recorder=recorder,
        max_workers=max_workers,
        atomic_dedup=atomic_dedup,
    )


def run(
    grammar: Grammar,
    on_word: WordCallback,
    start: str = DEFAULT_START,
    strategy: Strategy = Strategy.CONCURRENT,
    **options,
) -> ExplorationResult:
    """Explore `grammar` from `start`, calling `on_word` for every word found.

    Blocks until the bounded derivation space is exhausted.

    Args:
        grammar: The grammar to explore
        on_word: Called once per emitted word (from worker threads when CONCURRENT)
        start: Start string, "S" by default
        strategy: SEQUENTIAL or CONCURRENT
        **options: margin, recorder, max_workers, atomic_dedup

    Returns:
        ExplorationResult with run statistics
    """
    explorer = make_explorer(grammar, strategy, **options)
    return explorer.run(on_word, start)


def collect_words(
    grammar: Grammar,
    start: str = DEFAULT_START,
    strategy: Strategy = Strategy.CONCURRENT,
    **options,
) -> list[str]:
    """Run to exhaustion and return every emitted word (duplicates included)."""
    collector = WordCollector()
    run(grammar, collector, start=start, strategy=strategy, **options)
    return collector.words
