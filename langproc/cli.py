#!/usr/bin/env python3
"""
langproc — enumerate the words of a rewriting grammar

Usage:
    langproc [options] <grammar-file>

Reads a grammar file, explores every derivation from the start string and
prints each word of length <= n made only of terminals.

Exit status:
    0  success
    1  grammar file missing/unreadable, output file error, or a failed run
    2  no grammar file given
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
import textwrap
import threading
import time
from typing import Optional, TextIO

from langproc.classifier import DEFAULT_MARGIN
from langproc.explorer import Explorer, ExplorationError, Strategy, make_explorer
from langproc.grammar import DEFAULT_START, Grammar
from langproc.loader import load_grammar
from langproc.sinks import ConsoleSink, FileSink, Tee, WordCounter
from langproc.trace import DerivationGraph

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

PROGRESS_INTERVAL = 0.5


# ============================================================================
# Formatting helpers
# ============================================================================

class C:
    """ANSI colors."""
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    RESET = "\033[0m"

    @staticmethod
    def off():
        C.BOLD = C.DIM = C.RED = C.GREEN = C.YELLOW = C.CYAN = C.RESET = ""


def header(text: str) -> str:
    return f"\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}\n{C.BOLD}  {text}{C.RESET}\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}"


def ok(text: str) -> str:
    return f"  {C.GREEN}✓{C.RESET} {text}"


def warn(text: str) -> str:
    return f"  {C.YELLOW}⚠{C.RESET} {text}"


def fail(text: str) -> str:
    return f"  {C.RED}✗{C.RESET} {text}"


def dim(text: str) -> str:
    return f"{C.DIM}{text}{C.RESET}"


def elapsed(seconds: float) -> str:
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    return f"{hours}:{minutes:02d}:{secs:06.3f}"


# ============================================================================
# Progress line
# ============================================================================

class ProgressLine:
    """Background status line: words found, elapsed time, units in flight.

    Redrawn every `interval` seconds under `lock`, the same lock the console
    sink takes, so a word is never printed halfway through a redraw.
    """

    def __init__(
        self,
        explorer: Explorer,
        counter: WordCounter,
        lock: threading.Lock,
        stream: Optional[TextIO] = None,
        interval: float = PROGRESS_INTERVAL,
    ) -> None:
        self._explorer = explorer
        self._counter = counter
        self._lock = lock
        self._stream = stream if stream is not None else sys.stdout
        self._interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._began = 0.0
        self.text = ""

    def start(self) -> None:
        self._began = time.perf_counter()
        self._draw("Processing...")
        self._thread = threading.Thread(target=self._loop, name="langproc-progress", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        with self._lock:
            if self.text:
                self._stream.write(" " * len(self.text) + "\r")
                self._stream.flush()
            self.text = ""

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            self._draw(
                f"Processing: found {self._counter.count} words in "
                f"{elapsed(time.perf_counter() - self._began)} "
                f"[{self._explorer.in_flight} in flight]"
            )

    def _draw(self, line: str) -> None:
        # `text` stays plain so the console sink can pad words to its width
        with self._lock:
            self.text = line
            self._stream.write(dim(line) + "\r")
            self._stream.flush()


# ============================================================================
# Commands
# ============================================================================

def configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def show_grammar(path: str, grammar: Grammar) -> None:
    print(header(f"GRAMMAR: {path}"))
    alphabet = ", ".join(sorted(grammar.terminals)) or "-"
    print(f"  n = {grammar.max_length}")
    print(f"  L = {{{alphabet}}}")
    print(f"\n  {C.BOLD}Rules:{C.RESET}")
    for rule in grammar.rules:
        print(f"    {rule}")
    print()


def show_derivations(recorder: DerivationGraph) -> None:
    print(header("DERIVATIONS"))
    words = recorder.words
    if not words:
        print(warn("No words derived"))
        return
    for word in words:
        print(f"  {C.CYAN}{word}{C.RESET}: {recorder.format_derivation(word)}")


def cmd_explore(args) -> int:
    try:
        loaded = load_grammar(args.grammar)
    except FileNotFoundError:
        print(fail(f"Grammar file does not exist: {args.grammar}"), file=sys.stderr)
        return EXIT_FAILURE
    except (OSError, UnicodeDecodeError) as e:
        print(fail(f"Cannot read grammar file: {e}"), file=sys.stderr)
        return EXIT_FAILURE

    grammar = loaded.grammar
    if args.verbose:
        show_grammar(args.grammar, grammar)

    recorder = DerivationGraph() if args.derivations else None
    explorer = make_explorer(
        grammar,
        Strategy.SEQUENTIAL if args.single else Strategy.CONCURRENT,
        margin=args.margin,
        recorder=recorder,
        max_workers=args.workers,
        atomic_dedup=not args.no_atomic_dedup,
    )

    counter = WordCounter()
    display_lock = threading.Lock()
    progress = ProgressLine(explorer, counter, display_lock) if args.verbose else None

    sinks = [counter]
    if not args.no_display:
        status = (lambda: progress.text) if progress is not None else None
        sinks.append(ConsoleSink(status=status, lock=display_lock, style=dim))

    try:
        with contextlib.ExitStack() as stack:
            if args.output_file:
                try:
                    sinks.append(stack.enter_context(FileSink(args.output_file)))
                except OSError as e:
                    print(fail(f"Cannot open output file: {e}"), file=sys.stderr)
                    return EXIT_FAILURE

            if progress is not None:
                progress.start()
            try:
                result = explorer.run(Tee(*sinks), args.start)
            except ExplorationError as e:
                print(fail(str(e)), file=sys.stderr)
                return EXIT_FAILURE
            finally:
                if progress is not None:
                    progress.stop()
    except OSError as e:
        # Sequential runs raise sink errors directly; closing the output file can fail too
        print(fail(f"Cannot write output: {e}"), file=sys.stderr)
        return EXIT_FAILURE

    if args.verbose:
        print()
        print(ok(f"Processing done, took {elapsed(result.elapsed)}."))
        print(ok(f"Found {counter.count} entries."))
        print(dim(result.summary()))
    elif args.time:
        print(f"Processing took {elapsed(result.elapsed)}.")

    if recorder is not None:
        show_derivations(recorder)

    return EXIT_OK


# ============================================================================
# CLI setup
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="langproc",
        description="Enumerate every word up to length n derivable from a rewriting grammar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
        grammar file:
          n = 5            maximum word length
          L = {a, b}       terminal alphabet
          S -> aSb | ab    rules; '|' separates alternatives, {empty} is epsilon

        examples:
          langproc anbn.txt
          langproc anbn.txt --start=aSb --single
          langproc anbn.txt --output-file=words.txt --no-display --time
          langproc anbn.txt --verbose --derivations
        """),
    )
    parser.add_argument("grammar", nargs="?", help="Grammar file with settings and rules")
    parser.add_argument("--output-file", metavar="FILE", help="Also write found words to FILE, one per line")
    parser.add_argument("--no-display", action="store_true", help="Do not print words on the console")
    parser.add_argument("--start", default=DEFAULT_START, metavar="WORD",
                        help=f"Start string (default: {DEFAULT_START})")
    parser.add_argument("--time", action="store_true", help="Show processing time")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="List rules, show progress and a final summary")
    parser.add_argument("--debug", action="store_true", help="Log every derivation step")
    parser.add_argument("--single", action="store_true", help="Explore on one thread, in deterministic order")
    parser.add_argument("--workers", type=int, metavar="N", help="Worker threads for concurrent exploration")
    parser.add_argument("--margin", type=int, default=DEFAULT_MARGIN, metavar="M",
                        help=f"How far past n intermediate strings may grow (default: {DEFAULT_MARGIN})")
    parser.add_argument("--no-atomic-dedup", action="store_true",
                        help="Check and insert seen strings in two steps (may expand a string twice)")
    parser.add_argument("--derivations", action="store_true", help="Print one derivation per word")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.no_color:
        C.off()

    if not args.grammar:
        parser.print_help()
        return EXIT_USAGE

    if args.workers is not None and args.workers <= 0:
        print(fail("--workers must be positive"), file=sys.stderr)
        return EXIT_USAGE

    configure_logging(args.verbose, args.debug)
    return cmd_explore(args)


if __name__ == "__main__":
    sys.exit(main())
